"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so session rows never leak between cases. Service-level
fixtures wire a :class:`SessionService` to an in-memory identity directory.
"""

from __future__ import annotations

import os

import pytest
from authcore.core.config import TestingConfig
from authcore.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authcore.factory import create_app  # application factory under test
from authcore.services._shared.ports import InMemoryIdentityDirectory, InMemorySessionStore
from authcore.services.sessions import IdentityClaims, SessionService, SessionTokenConfig
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from tests.helpers.utils import FrozenClock

TEST_JWT_SECRET = "test-signing-key-0123456789abcdef-0123456789abcdef"


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Uses the SQLAlchemy session store so HTTP tests hit the real table.
    - Avoids hitting external services (no Redis).
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_SECRET_KEY = TEST_JWT_SECRET
    LOG_LEVEL = "WARNING"


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
    app = create_app(TestConfig, identity_directory=InMemoryIdentityDirectory())
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

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one. Unit of Work commits release
    the SAVEPOINT only; the outer rollback discards everything.
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
    from tests.factories import bind_session

    bind_session(session)
    yield


# -- Session service wiring -----------------------------------------------------
@pytest.fixture
def clock():
    """Controllable UTC clock shared by stores and services under test."""
    return FrozenClock()


@pytest.fixture
def identities(app, monkeypatch):
    """Fresh identity directory installed on the app for the current test."""
    directory = InMemoryIdentityDirectory()
    monkeypatch.setitem(app.extensions, "identity_directory", directory)
    return directory


@pytest.fixture
def make_user(identities, faker):
    """Register a user in the identity directory and return its claims."""

    def _make(user_id: str | None = None, *, role: str = "USER") -> IdentityClaims:
        claims = IdentityClaims(
            user_id=user_id or str(faker.unique.random_int(min=1, max=10_000_000)),
            email=faker.unique.email(),
            role=role,
        )
        identities.put(claims)
        return claims

    return _make


@pytest.fixture
def memory_store(clock):
    """In-memory session store driven by the test clock."""
    return InMemorySessionStore(clock=clock)


@pytest.fixture
def service_factory(identities, clock):
    """Build a :class:`SessionService` around any store (tokens need an app context)."""
    from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider

    def _build(store, *, token_cfg: SessionTokenConfig | None = None) -> SessionService:
        return SessionService(
            token_provider=JWTTokenProvider(),
            session_store=store,
            identity_directory=identities,
            token_cfg=token_cfg,
            clock=clock,
        )

    return _build


@pytest.fixture
def service(service_factory, memory_store):
    """Session service over the in-memory store."""
    return service_factory(memory_store)
