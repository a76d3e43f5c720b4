"""Factory Boy helpers wired to the transactional test session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Hold the session handed over by the pytest ``session`` fixture."""

    _session = None

    @classmethod
    def set(cls, session):
        """Register the session used to persist factory-built records."""
        cls._session = session

    @classmethod
    def get(cls):
        """Return the registered session.

        Raises
        ------
        RuntimeError
            If factories are used without the ``session`` fixture wiring.
        """
        if cls._session is None:
            raise RuntimeError("Factories session not set. Did you pass the 'session' fixture?")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Base class persisting through the transactional session (flush only)."""

    class Meta:
        abstract = True
        # A callable keeps Factory Boy lazy so each test gets its own session.
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
