"""Unit of Work abstractions and concrete implementations.

This package re-exports the SQLAlchemy-backed unit of work used by the token
service, alongside the abstract contract it implements.
"""

from .base import UnitOfWork
from .sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

__all__ = [
    "UnitOfWork",
    "SQLAlchemyUnitOfWork",
    "SQLAlchemyReadOnlyUnitOfWork",
]
