"""Entropy-backed token identifier generation."""

from .generator import EntropyTokenIdGenerator, build_token_id_generator
from .sources import (
    DeviceEntropySource,
    OpenSSLEntropySource,
    SecretsEntropySource,
    WeakHashEntropySource,
    default_sources,
)

__all__ = [
    "EntropyTokenIdGenerator",
    "build_token_id_generator",
    "SecretsEntropySource",
    "OpenSSLEntropySource",
    "DeviceEntropySource",
    "WeakHashEntropySource",
    "default_sources",
]
