# tokenstore/services/tokens/service.py
from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any

from tokenstore.core.logger import mask_token_id
from tokenstore.infra.entropy import build_token_id_generator
from tokenstore.services._shared.base import BaseService, ServiceContext
from tokenstore.services._shared.errors import InvalidArgumentError
from tokenstore.services._shared.ports import TokenIdGenerator
from tokenstore.services.tokens.dto import (
    IssueTokenIn,
    TokenData,
    TokenId,
    TokenLifetimeConfig,
    TokenType,
)
from tokenstore.services.tokens.translator import TokenTranslator

logger = logging.getLogger(__name__)


def normalize_token_data(data: TokenData) -> TokenData:
    """
    Validate caller-supplied token data before it reaches the store.

    Accepts plain strings for ``token_id`` and ``type`` and coerces them.

    :raises InvalidArgumentError: For a malformed id, unknown type or a
        naive ``expires``.
    """
    token_id = data.token_id if isinstance(data.token_id, TokenId) else TokenId(str(data.token_id))
    token_type = TokenType.coerce(data.type)
    if not isinstance(data.expires, datetime) or data.expires.tzinfo is None:
        raise InvalidArgumentError("expires must be a timezone-aware datetime.")
    return replace(data, token_id=token_id, type=token_type)


class TokenService(BaseService):
    """
    Token lifecycle service: issue, save (upsert), load and update.

    Each call runs in its own Unit of Work: writes commit on success, and any
    failure rolls back and propagates unchanged. Optimistic-concurrency
    conflicts (``StaleDataError``) and duplicate inserts (``IntegrityError``)
    are never retried here; retry policy belongs to the caller.
    """

    def __init__(
        self,
        *,
        id_generator: TokenIdGenerator,
        translator: TokenTranslator | None = None,
        lifetimes: TokenLifetimeConfig | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param id_generator: Source of fresh token identifiers.
        :param translator: Record/DTO translator.
        :param lifetimes: Default access/refresh lifetimes.
        :param ctx: Request-scoped context used in log lines.
        """
        super().__init__(id_generator=id_generator, translator=translator, ctx=ctx)
        self.lifetimes = lifetimes or TokenLifetimeConfig(
            access_expires=timedelta(hours=1),
            refresh_expires=timedelta(days=30),
        )

    @classmethod
    def from_config(
        cls, config: Mapping[str, Any], *, ctx: ServiceContext | None = None
    ) -> TokenService:
        """Build a service from Flask-style configuration (e.g. ``app.config``)."""
        lifetimes = TokenLifetimeConfig(
            access_expires=timedelta(seconds=int(config.get("ACCESS_TOKEN_TTL_SECONDS", 3600))),
            refresh_expires=timedelta(
                seconds=int(config.get("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 3600))
            ),
        )
        return cls(
            id_generator=build_token_id_generator(config),
            lifetimes=lifetimes,
            ctx=ctx,
        )

    # ------------------------------------------------------------------ #
    # Commands
    # ------------------------------------------------------------------ #

    def issue_token(self, dto: IssueTokenIn) -> TokenData:
        """
        Generate a fresh identifier and persist a new token.

        :param dto: Issue input; ``expires_in`` overrides the configured TTL.
        :returns: The stored token.
        :raises EntropyUnavailableError: When no identifier can be generated.
        """
        token_type = TokenType.coerce(dto.type)
        expires_in = (
            self.lifetimes.for_type(token_type) if dto.expires_in is None else dto.expires_in
        )
        if expires_in <= timedelta(0):
            raise InvalidArgumentError("expires_in must be positive.")

        with self.rw_uow() as uow:
            token_id = uow.tokens.generate_token_id(token_type)
            data = TokenData(
                token_id=token_id,
                type=token_type,
                client_id=dto.client_id,
                user_id=dto.user_id,
                expires=datetime.now(UTC) + expires_in,
                scope=dto.scope,
            )
            out = self.translator.to_data(uow.tokens.save_token(data))

        logger.info(
            "Issued %s token %s for user=%s client=%s actor=%s request_id=%s",
            token_type.value,
            mask_token_id(out.token_id),
            out.user_id,
            out.client_id,
            self.ctx.actor,
            self.ctx.request_id,
        )
        return out

    def save_token(self, data: TokenData) -> TokenData:
        """
        Insert or update ``data`` keyed by ``(token_id, type)`` and commit.

        :returns: The stored token as read back from the store.
        """
        data = normalize_token_data(data)
        with self.rw_uow() as uow:
            out = self.translator.to_data(uow.tokens.save_token(data))
        return out

    def update_token(self, data: TokenData) -> TokenData | None:
        """
        Overwrite client, expiry, user and scope of an existing token.

        :returns: Updated token, or ``None`` when no record holds the id.
        """
        data = normalize_token_data(data)
        with self.rw_uow() as uow:
            record = uow.tokens.load_token(data.token_id, data.type)
            if record is None:
                return None
            out = self.translator.to_data(uow.tokens.update_token(record, data))
        return out

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #

    def load_token(self, token_id: TokenId | str, token_type: TokenType | str) -> TokenData | None:
        """Return the token for ``token_id`` within its type, or ``None``."""
        token_id = token_id if isinstance(token_id, TokenId) else TokenId(str(token_id))
        with self.ro_uow() as uow:
            record = uow.tokens.load_token(token_id, token_type)
            return None if record is None else self.translator.to_data(record)

    def load_token_by_user_id(
        self, user_id: str, token_type: TokenType | str
    ) -> TokenData | None:
        """Return the user's furthest-expiring token of ``token_type``, or ``None``."""
        with self.ro_uow() as uow:
            record = uow.tokens.load_token_by_user_id(user_id, token_type)
            return None if record is None else self.translator.to_data(record)
