# tokenstore/services/tokens/dto.py
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from tokenstore.services._shared.errors import InvalidArgumentError

TOKEN_ID_LENGTH = 40
TOKEN_ID_RAW_BYTES = 20

_TOKEN_ID_RE = re.compile(r"^[0-9a-f]{40}$")


class TokenType(str, Enum):
    """Kind of bearer token; also the storage partition discriminant."""

    ACCESS = "access"
    REFRESH = "refresh"

    @classmethod
    def coerce(cls, value: TokenType | str) -> TokenType:
        """
        Normalize a member or its string value into a :class:`TokenType`.

        :param value: ``TokenType`` member or ``"access"``/``"refresh"``.
        :returns: Matching member.
        :raises InvalidArgumentError: For anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise InvalidArgumentError(f"Unknown token type: {value!r}")


def is_token_id(value: object) -> bool:
    """Return ``True`` when ``value`` is a 40-character lowercase hex string."""
    return isinstance(value, str) and _TOKEN_ID_RE.match(value) is not None


@dataclass(frozen=True, slots=True)
class TokenId:
    """
    Opaque token identifier.

    :param value: 40 lowercase hexadecimal characters (160 bits).
    :type value: str
    """

    value: str

    def __post_init__(self) -> None:
        if not is_token_id(self.value):
            raise InvalidArgumentError(
                f"Token id must be {TOKEN_ID_LENGTH} lowercase hexadecimal characters."
            )

    def __str__(self) -> str:
        return self.value


# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IssueTokenIn:
    """
    Input DTO for issuing a brand-new token.

    :param type: Access or refresh.
    :param client_id: API client the token is issued to.
    :param user_id: End user the token acts for.
    :param scope: Space- or comma-delimited scope.
    :param expires_in: Lifetime override; the configured TTL for ``type``
        applies when ``None``.
    """

    type: TokenType
    client_id: str
    user_id: str
    scope: str = ""
    expires_in: timedelta | None = None


# ------------------------- Input/Output DTOs ------------------------------ #


@dataclass(frozen=True, slots=True)
class TokenData:
    """
    Wire-level token as exchanged with callers.

    :param token_id: Identifier, unique within ``type``.
    :param type: Partition discriminant.
    :param client_id: Owning API client.
    :param user_id: End user.
    :param expires: Absolute, timezone-aware expiry.
    :param scope: Granted scope.
    """

    token_id: TokenId
    type: TokenType
    client_id: str
    user_id: str
    expires: datetime
    scope: str


# ---------------------------- Config DTOs --------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenLifetimeConfig:
    """
    Default lifetimes applied when issuing tokens.

    :param access_expires: Lifetime of access tokens.
    :param refresh_expires: Lifetime of refresh tokens.
    """

    access_expires: timedelta
    refresh_expires: timedelta

    def for_type(self, token_type: TokenType) -> timedelta:
        """Return the lifetime configured for ``token_type``."""
        if token_type is TokenType.REFRESH:
            return self.refresh_expires
        return self.access_expires
