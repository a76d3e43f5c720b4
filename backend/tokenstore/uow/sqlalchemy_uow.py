"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.orm import Session, scoped_session

from tokenstore.core.extensions import db
from tokenstore.repositories.token import TokenRepository
from tokenstore.services._shared.ports import TokenIdGenerator
from tokenstore.services.tokens.translator import TokenTranslator
from tokenstore.uow.base import UnitOfWork

logger = logging.getLogger(__name__)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(
        self,
        *,
        session: Session,
        id_generator: TokenIdGenerator | None = None,
        translator: TokenTranslator | None = None,
    ) -> None:
        self.session = session
        self.tokens = TokenRepository(
            session=self.session,
            id_generator=id_generator,
            translator=translator,
        )


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Leaving the block without an exception commits; any exception (including
    a failed commit) rolls back and propagates unchanged.
    """

    def __init__(
        self,
        *,
        id_generator: TokenIdGenerator | None = None,
        translator: TokenTranslator | None = None,
    ) -> None:
        super().__init__(session=db.session, id_generator=id_generator, translator=translator)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            logger.debug("Rolling back unit of work after %s", exc_type.__name__)
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    Installs a ``before_flush`` guard so any attempt to write through the ORM
    raises, and always rolls back on exit. ``commit()`` is disallowed.
    """

    def __init__(self, *, translator: TokenTranslator | None = None) -> None:
        super().__init__(session=db.session, translator=translator)
        self._guard_installed = False

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._install_guard()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            with suppress(Exception):
                self.session.rollback()
        finally:
            self._remove_guard()

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    # ----------------------------- Guards ------------------------------------

    @staticmethod
    def _before_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (new/dirty/deleted objects present)."
            )

    def _guard_target(self) -> Session:
        # Bind to the concrete Session so other sessions stay unaffected
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def _install_guard(self) -> None:
        if self._guard_installed:
            return
        self._target = self._guard_target()
        event.listen(self._target, "before_flush", self._before_flush)
        self._guard_installed = True

    def _remove_guard(self) -> None:
        if not self._guard_installed:
            return
        with suppress(Exception):
            event.remove(self._target, "before_flush", self._before_flush)
        self._guard_installed = False
