"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between
repositories, domain models, and application services.

Store failures are deliberately absent from this module: SQLAlchemy's own
``StaleDataError`` (optimistic-concurrency conflict), ``IntegrityError``
(duplicate key) and ``OperationalError`` (store unavailable) reach callers
unmodified. The translation to HTTP responses (RFC 7807) is handled by
``tokenstore/core/errors.py``.
"""

from __future__ import annotations


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories or domain logic.
    """

    pass


class InvalidArgumentError(ServiceError, ValueError):
    """
    Raised for malformed input detected before any store round-trip.

    Covers unknown filter keys, malformed token identifiers and unknown
    token-type discriminators.
    """


class EntropyUnavailableError(ServiceError):
    """
    Raised when no acceptable entropy source could produce a token identifier.

    :param attempted: Names of the sources that were tried, in order.
    :type attempted: tuple[str, ...]
    """

    def __init__(self, attempted: tuple[str, ...]) -> None:
        self.attempted = attempted
        tried = ", ".join(attempted) or "none"
        super().__init__(f"No strong entropy source available (tried: {tried})")
