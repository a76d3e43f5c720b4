# tokenstore/infra/entropy/generator.py
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from tokenstore.infra.entropy.sources import DEFAULT_DEVICE_PATH, default_sources
from tokenstore.services._shared.errors import EntropyUnavailableError
from tokenstore.services._shared.ports import EntropySource, TokenIdGenerator
from tokenstore.services.tokens.dto import TOKEN_ID_RAW_BYTES, TokenId, TokenType

logger = logging.getLogger(__name__)


class EntropyTokenIdGenerator(TokenIdGenerator):
    """
    Token id generator walking an ordered chain of entropy sources.

    The first source yielding exactly 20 bytes wins; its output is
    hex-encoded into a 40-character identifier. Sources flagged
    ``strong = False`` are skipped unless ``allow_weak_fallback`` is set, in
    which case every use is logged as a warning.

    The token type does not influence the value: access and refresh
    identifiers share one space and uniqueness is enforced per partition by
    the repository.

    :param sources: Ordered sources; defaults to :func:`default_sources`.
    :param allow_weak_fallback: Permit non-cryptographic sources.
    :param device_path: Entropy device used by the default chain.
    """

    def __init__(
        self,
        sources: Sequence[EntropySource] | None = None,
        *,
        allow_weak_fallback: bool = False,
        device_path: str = DEFAULT_DEVICE_PATH,
    ) -> None:
        self.sources: tuple[EntropySource, ...] = tuple(
            sources if sources is not None else default_sources(device_path=device_path)
        )
        self.allow_weak_fallback = allow_weak_fallback

    def generate_token_id(self, token_type: TokenType | str) -> TokenId:
        """
        Produce a fresh identifier from the best available source.

        :param token_type: Access or refresh; validated, otherwise unused.
        :returns: 40-character lowercase hex identifier.
        :raises InvalidArgumentError: For an unknown token type.
        :raises EntropyUnavailableError: When no permitted source delivers.
        """
        token_type = TokenType.coerce(token_type)
        attempted: list[str] = []

        for source in self.sources:
            strong = getattr(source, "strong", True)
            if not strong and not self.allow_weak_fallback:
                logger.debug("Skipping weak entropy source %s", source.name)
                continue

            attempted.append(source.name)
            raw = source.read(TOKEN_ID_RAW_BYTES)
            if raw is None or len(raw) != TOKEN_ID_RAW_BYTES:
                logger.warning(
                    "Entropy source %s unavailable for %s token id",
                    source.name,
                    token_type.value,
                    extra={"entropy_source": source.name, "token_type": token_type.value},
                )
                continue

            if not strong:
                logger.warning(
                    "Issuing %s token id from NON-CRYPTOGRAPHIC source %s",
                    token_type.value,
                    source.name,
                    extra={"entropy_source": source.name, "token_type": token_type.value},
                )
            else:
                logger.debug("Token id drawn from %s", source.name)
            return TokenId(raw.hex())

        logger.error("No entropy source produced a token id (tried: %s)", ", ".join(attempted))
        raise EntropyUnavailableError(tuple(attempted))


def build_token_id_generator(config: Mapping[str, Any]) -> EntropyTokenIdGenerator:
    """Build the default generator from Flask-style configuration."""
    return EntropyTokenIdGenerator(
        allow_weak_fallback=bool(config.get("TOKEN_ID_ALLOW_WEAK_FALLBACK", False)),
        device_path=str(config.get("TOKEN_ID_DEVICE_PATH") or DEFAULT_DEVICE_PATH),
    )
