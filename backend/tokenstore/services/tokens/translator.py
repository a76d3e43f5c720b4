"""Mapping between wire-level :class:`TokenData` and stored :class:`TokenRecord`."""

from __future__ import annotations

from tokenstore.models.token import TokenRecord
from tokenstore.services.tokens.dto import TokenData, TokenId, TokenType

#: Fields copied onto an existing record by an update
MUTABLE_FIELDS = ("client_id", "expires", "user_id", "scope")


class TokenTranslator:
    """Stateless converter injected into the repository and the service."""

    def to_record(self, data: TokenData) -> TokenRecord:
        """Build a new, transient record carrying every field of ``data``."""
        return TokenRecord(
            token_id=str(data.token_id),
            type=data.type,
            client_id=str(data.client_id),
            user_id=str(data.user_id),
            expires=data.expires,
            scope=str(data.scope),
        )

    def apply(self, record: TokenRecord, data: TokenData) -> TokenRecord:
        """Overwrite the mutable fields of ``record``; id and type stay untouched."""
        record.client_id = str(data.client_id)
        record.expires = data.expires
        record.user_id = str(data.user_id)
        record.scope = str(data.scope)
        return record

    def to_data(self, record: TokenRecord) -> TokenData:
        """Convert a persistent record into its wire-level form."""
        return TokenData(
            token_id=TokenId(record.token_id),
            type=TokenType.coerce(record.type),
            client_id=record.client_id,
            user_id=record.user_id,
            expires=record.expires,
            scope=record.scope,
        )
