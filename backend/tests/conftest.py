"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from tokenstore.core.extensions import db as _db  # Flask-SQLAlchemy instance
from tokenstore.factory import create_app  # application factory under test


class TestConfig:
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Keeps the weak identifier fallback disabled, as in production.
    - Avoids hitting external services.
    """

    TESTING = True
    DEBUG = False
    PROPAGATE_EXCEPTIONS = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = "WARNING"
    TOKEN_ID_ALLOW_WEAK_FALLBACK = False
    TOKEN_ID_DEVICE_PATH = "/dev/urandom"
    ACCESS_TOKEN_TTL_SECONDS = 3600
    REFRESH_TOKEN_TTL_SECONDS = 86400


def _enable_sqlite_savepoints(engine) -> None:
    """Let pysqlite honour SAVEPOINT by emitting BEGIN ourselves."""

    @event.listens_for(engine, "connect")
    def _do_connect(dbapi_connection, connection_record):  # pragma: no cover
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _do_begin(conn):  # pragma: no cover
        conn.exec_driver_sql("BEGIN")


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        if _db.engine.url.get_backend_name() == "sqlite":
            _enable_sqlite_savepoints(_db.engine)
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session.

    Yields
    ------
    sqlalchemy.engine.Connection
        Connection reused by nested transactions in each test.
    """
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The outer transaction is never committed. The session joins it through a
    SAVEPOINT, so ``session.commit()`` inside code under test only releases
    that SAVEPOINT and everything disappears with the final rollback.
    """
    top_trans = connection.begin()
    nested = connection.begin_nested()

    SessionFactory = sessionmaker(
        bind=connection,
        join_transaction_mode="create_savepoint",
        autoflush=False,
    )
    scoped = scoped_session(SessionFactory)

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        if nested.is_active:
            nested.rollback()
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield
