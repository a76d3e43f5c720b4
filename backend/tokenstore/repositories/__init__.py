"""Repository package exposing persistence-layer access for token records."""

from __future__ import annotations

from tokenstore.repositories.base import BaseRepository
from tokenstore.repositories.token import TokenRepository

__all__ = [
    "BaseRepository",
    "TokenRepository",
]
