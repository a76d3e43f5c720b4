"""
Abstract Unit of Work contracts.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tokenstore.repositories.token import TokenRepository


class UnitOfWork(ABC):
    """
    Coordinates a transactional boundary for one repository call.

    Responsibilities:
    - Expose the token repository bound to the UoW's session.
    - Commit on success, rollback on error, then re-raise.
    """

    tokens: TokenRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...
    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...
    @abstractmethod
    def commit(self) -> None: ...
    @abstractmethod
    def rollback(self) -> None: ...
