"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Service-level
collaborators (hasher, signer, stores, notifier) are provided as fixtures so
tests can mix real adapters with in-memory doubles.
"""

from __future__ import annotations

import os
from dataclasses import replace

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from auth_api.core.config import AuthSettings, TestingConfig
from auth_api.core.container import get_registry
from auth_api.core.extensions import db as _db  # Flask-SQLAlchemy instance
from auth_api.factory import create_app  # application factory under test
from auth_api.infra.security import WerkzeugPasswordHasher
from auth_api.infra.sqlalchemy import SQLRefreshTokenStore
from auth_api.services._shared.ports import (
    InMemoryNotifier,
    InMemoryRefreshTokenStore,
    InMemoryUserCache,
    StubTokenSigner,
)

TEST_HASH_METHOD = TestingConfig.PASSWORD_HASH_METHOD


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
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
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
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
    A top-level transaction is opened per test and a SAVEPOINT is started
    inside it. The session joins in ``create_savepoint`` mode, so commits
    and rollbacks issued by units of work only touch the session's own
    savepoint; everything is discarded when the outer transaction rolls back.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
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


# -- Service collaborators ------------------------------------------------------
@pytest.fixture
def settings(app) -> AuthSettings:
    """Auth settings of the testing app (auto-verify, 5m / 30d TTLs)."""
    return get_registry(app).settings


@pytest.fixture
def confirm_settings(settings) -> AuthSettings:
    """Settings requiring email confirmation on registration."""
    return replace(settings, require_email_confirmation=True)


@pytest.fixture
def hasher():
    return WerkzeugPasswordHasher(method=TEST_HASH_METHOD)


@pytest.fixture
def signer():
    return StubTokenSigner()


@pytest.fixture
def notifier():
    return InMemoryNotifier()


@pytest.fixture
def memory_store():
    return InMemoryRefreshTokenStore()


@pytest.fixture
def sql_store():
    return SQLRefreshTokenStore()


@pytest.fixture
def user_cache():
    return InMemoryUserCache()


# -- HTTP layer ------------------------------------------------------------------
@pytest.fixture
def client(app, session):
    """Flask test client running against the transactional session."""
    return app.test_client()


@pytest.fixture
def cli_runner(app, session):
    """Click runner for ``flask`` commands registered on the app."""
    return app.test_cli_runner()
