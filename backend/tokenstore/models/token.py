"""Persisted bearer token record."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, validates

from tokenstore.core.extensions import db
from tokenstore.core.logger import mask_token_id
from tokenstore.services.tokens.dto import TOKEN_ID_LENGTH, TokenType, is_token_id

from .base import TimestampMixin, UTCDateTime


class TokenRecord(TimestampMixin, db.Model):
    """
    Access or refresh token, partitioned by ``type``.

    One table holds both kinds; the composite primary key ``(token_id, type)``
    keeps the partitions apart, so an access and a refresh token may share an
    identifier without clashing.

    Fields
    ------
    token_id : str
        40-character lowercase hex identifier. Immutable.
    type : TokenType
        Partition discriminant. Immutable.
    client_id : str
        API client that owns the token.
    user_id : str
        End user the token was issued for.
    expires : datetime
        Absolute expiry (UTC).
    scope : str
        Space- or comma-delimited scope.
    version_id : int
        Optimistic-concurrency counter maintained by SQLAlchemy.
    """

    __tablename__ = "tokens"

    token_id: Mapped[str] = mapped_column(String(TOKEN_ID_LENGTH), primary_key=True)
    type: Mapped[TokenType] = mapped_column(
        SAEnum(
            TokenType,
            name="token_type",
            native_enum=False,
            length=16,
            validate_strings=True,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        primary_key=True,
    )
    client_id: Mapped[str] = mapped_column(String(255), nullable=False)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    expires: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    scope: Mapped[str] = mapped_column(Text, nullable=False, default="")
    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __table_args__ = (
        Index("ix_tokens_type_user_id_expires", "type", "user_id", "expires"),
        Index("ix_tokens_type_expires", "type", "expires"),
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        type_value = self.type.value if isinstance(self.type, TokenType) else self.type
        return f"<TokenRecord type={type_value} token_id={mask_token_id(self.token_id)}>"

    # -------------------- Validators --------------------
    @validates("token_id")
    def _validate_token_id(self, key: str, value: Any) -> str:
        """
        Reject malformed identifiers and any change once assigned.

        :raises ValueError: If the value is not 40 lowercase hex characters,
            or if the record already carries a different identifier.
        """
        if not is_token_id(value):
            raise ValueError("token_id must be 40 lowercase hexadecimal characters.")
        current = self.__dict__.get("token_id")
        if current is not None and current != value:
            raise ValueError("token_id is immutable.")
        return str(value)

    @validates("type")
    def _validate_type(self, key: str, value: Any) -> TokenType:
        """
        Coerce the discriminant and forbid changing it once assigned.

        :raises ValueError: For unknown types or a change of partition.
        """
        token_type = TokenType.coerce(value)
        current = self.__dict__.get("type")
        if current is not None and TokenType.coerce(current) is not token_type:
            raise ValueError("type is immutable.")
        return token_type
