"""Generic repository base for SQLAlchemy 2.x.

This module centralizes persistence-only concerns shared by repositories:
- Session injection with a Flask-scoped fallback.
- Strict equality filters over a per-repository whitelist.
- Insert / flush / refresh primitives mirroring the store contract.
- No business logic, no commit/rollback: the Unit of Work owns transactions.

Design decisions
----------------
* Repositories MUST remain thin and persistence-focused.
* Filtering is opt-in per aggregate via ``_filterable_fields``; unknown keys
  are rejected before any SQL is emitted.
* Store errors (``IntegrityError``, ``StaleDataError``, ``OperationalError``)
  propagate unmodified.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_
from sqlalchemy.orm import InstrumentedAttribute, Session

from tokenstore.core.extensions import db
from tokenstore.services._shared.errors import InvalidArgumentError

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Generic, persistence-only repository for a single aggregate.

    Subclasses MUST define:

    * ``model``: the SQLAlchemy mapped class.

    Subclasses MAY override:

    * ``_filterable_fields`` to expose equality-filterable keys.

    This class NEVER opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """Initialise the repository with an optional SQLAlchemy session.

        When no explicit session is provided the repository falls back to the
        Flask-scoped session exposed by ``tokenstore.core.extensions``.

        :param session: Session shared across the Unit of Work scope.
        :type session: :class:`sqlalchemy.orm.Session` | None
        """
        self._session: Session | None = session

    # ------------------------------ Session access ---------------------------

    @property
    def session(self) -> Session:
        """Return the injected session, or the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _filterable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        """Whitelist mapping of public filter keys to model attributes.

        :returns: Public key → ORM attribute mapping.
        :rtype: Mapping[str, InstrumentedAttribute]
        """
        return {}

    # ------------------------------ Internals --------------------------------

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        filters: Mapping[str, Any] | None,
    ) -> Select[Any]:
        """AND-combine ``column == value`` clauses for every supplied pair.

        :param stmt: Input select to filter.
        :type stmt: :class:`sqlalchemy.sql.Select`
        :param filters: Field=value mapping (equality only).
        :type filters: Mapping[str, Any] | None
        :returns: Filtered select.
        :rtype: :class:`sqlalchemy.sql.Select`
        :raises InvalidArgumentError: If any key is not whitelisted.
        """
        if not filters:
            return stmt

        allowed = self._filterable_fields()
        unknown = sorted(k for k in filters if k not in allowed)
        if unknown:
            raise InvalidArgumentError(
                f"Unknown filter fields for {self.model.__name__}: {unknown}"
            )

        clauses = [allowed[k] == v for k, v in filters.items()]
        return stmt.where(and_(*clauses))

    # ------------------------------ Store primitives -------------------------

    def find_for_update(self, key: Any) -> E | None:
        """Fetch an entity by primary key, locking the row where supported.

        :param key: Primary-key value (tuple for composite keys).
        :returns: Entity or ``None``.
        """
        return self.session.get(self.model, key, with_for_update=True)

    def add(self, instance: E) -> E:
        """Stage a new entity for persistence and flush it to the store.

        :param instance: New entity instance.
        :type instance: E
        :returns: The same instance after ``flush()``.
        :rtype: E
        """
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()

    def refresh(self, instance: E) -> E:
        """Reload ``instance`` from the store so store-side defaults are visible.

        :param instance: Persistent entity.
        :returns: The same, refreshed instance.
        """
        self.session.refresh(instance)
        return instance
