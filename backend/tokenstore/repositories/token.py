"""Token repository: lookup and upsert of access/refresh token records."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import Any, cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from tokenstore.core.logger import mask_token_id
from tokenstore.models.token import TokenRecord
from tokenstore.repositories.base import BaseRepository
from tokenstore.services._shared.errors import InvalidArgumentError
from tokenstore.services._shared.ports import TokenIdGenerator
from tokenstore.services.tokens.dto import TokenData, TokenId, TokenType
from tokenstore.services.tokens.translator import TokenTranslator

logger = logging.getLogger(__name__)


class TokenRepository(BaseRepository[TokenRecord]):
    """Persistence-only repository for :class:`TokenRecord`.

    Every lookup is scoped to one partition (``type``). Writes flush and then
    refresh from the store so the returned record reflects what was
    committed to the current transaction, including store-side defaults.
    Commit and rollback belong to the Unit of Work.

    :param session: Session shared with the Unit of Work.
    :param id_generator: Source of fresh token identifiers.
    :param translator: Maps wire-level data onto records.
    """

    model = TokenRecord

    def __init__(
        self,
        session: Session | None = None,
        *,
        id_generator: TokenIdGenerator | None = None,
        translator: TokenTranslator | None = None,
    ) -> None:
        super().__init__(session=session)
        self._id_generator = id_generator
        self.translator = translator or TokenTranslator()

    # ---------------------------- Whitelists ----------------------------

    def _filterable_fields(self):
        """Whitelist fields safe for equality filters."""
        return {
            "token_id": TokenRecord.token_id,
            "client_id": TokenRecord.client_id,
            "user_id": TokenRecord.user_id,
            "scope": TokenRecord.scope,
            "expires": TokenRecord.expires,
        }

    def _normalize_params(self, params: Mapping[str, Any] | None) -> dict[str, Any] | None:
        """Coerce filter values into what the store binds.

        ``TokenId`` values become plain strings; naive datetimes are rejected.

        :raises InvalidArgumentError: For a naive ``datetime`` value.
        """
        if not params:
            return None
        normalized: dict[str, Any] = {}
        for key, value in params.items():
            if isinstance(value, TokenId):
                value = str(value)
            elif isinstance(value, datetime) and value.tzinfo is None:
                raise InvalidArgumentError(f"Filter {key!r} needs a timezone-aware datetime.")
            normalized[key] = value
        return normalized

    # ---------------------------- Identifiers ----------------------------

    def generate_token_id(self, token_type: TokenType | str) -> TokenId:
        """Delegate to the injected generator.

        :raises RuntimeError: When the repository was built without one.
        """
        if self._id_generator is None:
            raise RuntimeError("TokenRepository has no id generator configured.")
        return self._id_generator.generate_token_id(token_type)

    # ---------------------------- Lookup ----------------------------

    def get_token_by_parameters(
        self,
        params: Mapping[str, Any] | None = None,
        token_type: TokenType | str = TokenType.ACCESS,
    ) -> TokenRecord | None:
        """Return the furthest-expiring record matching every filter.

        Filters are AND-combined equality checks within the partition of
        ``token_type``; the result is limited to one row ordered by
        ``expires`` descending. An empty mapping matches any record of the
        partition.

        :param params: Public field → value mapping.
        :param token_type: Partition to search.
        :returns: Best match or ``None``.
        :raises InvalidArgumentError: For unknown filter keys, naive datetime
            values or unknown token types.
        """
        token_type = TokenType.coerce(token_type)
        stmt = select(TokenRecord).where(TokenRecord.type == token_type)
        stmt = self._apply_equality_filters(stmt, self._normalize_params(params))
        stmt = stmt.order_by(TokenRecord.expires.desc()).limit(1)
        result = self.session.execute(stmt).scalars().first()
        return cast(TokenRecord | None, result)

    def load_token(self, token_id: TokenId | str, token_type: TokenType | str) -> TokenRecord | None:
        """Fetch the record for ``token_id`` in the partition of ``token_type``."""
        return self.get_token_by_parameters({"token_id": str(token_id)}, token_type)

    def load_token_by_user_id(
        self, user_id: str, token_type: TokenType | str
    ) -> TokenRecord | None:
        """Fetch the user's token with the greatest ``expires`` in the partition."""
        return self.get_token_by_parameters({"user_id": str(user_id)}, token_type)

    # ---------------------------- Writes ----------------------------

    def save_token(self, data: TokenData) -> TokenRecord:
        """Insert ``data`` or update the record already holding its id.

        The existence check locks the row (``SELECT ... FOR UPDATE`` where
        the dialect supports it) inside the caller's transaction, so the
        check and the write form one unit. Two writers inserting the same
        fresh key still race; the loser gets the store's ``IntegrityError``.

        :param data: Complete token, including ``token_id`` and ``type``.
        :returns: The refreshed, persistent record.
        """
        token_type = TokenType.coerce(data.type)
        existing = self.find_for_update((str(data.token_id), token_type))
        if existing is not None:
            logger.debug(
                "Token %s already stored in %s partition; updating",
                mask_token_id(data.token_id),
                token_type.value,
            )
            return self.update_token(existing, data)

        record = self.translator.to_record(data)
        self.add(record)
        self.refresh(record)
        logger.info(
            "Stored new %s token %s for client=%s",
            token_type.value,
            mask_token_id(record.token_id),
            record.client_id,
        )
        return record

    def update_token(self, record: TokenRecord, data: TokenData) -> TokenRecord:
        """Overwrite client, expiry, user and scope, flush, then refresh.

        ``token_id`` and ``type`` are never modified, whatever ``data``
        carries. A concurrent modification of the same row surfaces as
        :class:`sqlalchemy.orm.exc.StaleDataError`.

        :param record: Persistent record to mutate.
        :param data: Source of the new field values.
        :returns: The refreshed record.
        """
        self.translator.apply(record, data)
        self.flush()
        self.refresh(record)
        logger.info(
            "Updated %s token %s (version=%s)",
            TokenType.coerce(record.type).value,
            mask_token_id(record.token_id),
            record.version_id,
        )
        return record
