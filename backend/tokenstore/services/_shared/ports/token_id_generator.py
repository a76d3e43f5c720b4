from __future__ import annotations

from typing import Protocol, runtime_checkable

from tokenstore.services.tokens.dto import TokenId, TokenType


@runtime_checkable
class EntropySource(Protocol):
    """
    Platform-provided source of random bytes.

    ``read`` returns ``None`` (or a value of the wrong length) when the source
    is unavailable or refuses to vouch for its output; it must not raise for
    ordinary unavailability.
    """

    name: str

    def read(self, size: int) -> bytes | None: ...


class TokenIdGenerator(Protocol):
    """Port for producing fresh token identifiers."""

    def generate_token_id(self, token_type: TokenType) -> TokenId: ...
