"""Factory Boy base bound to the per-test SAVEPOINT session."""

from __future__ import annotations

import factory

_bound_session = None


def bind_session(session) -> None:
    """Point every factory at ``session`` (called by an autouse fixture)."""
    global _bound_session
    _bound_session = session


def bound_session():
    if _bound_session is None:
        raise RuntimeError("No session bound for factories; is the 'session' fixture active?")
    return _bound_session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    class Meta:
        abstract = True
        # Resolved on each create so every test gets its own SAVEPOINT session
        sqlalchemy_session_factory = bound_session
        sqlalchemy_session_persistence = "flush"
