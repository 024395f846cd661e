"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token signing, refresh-session persistence and identity lookup.

These ports decouple the session services from concrete implementations
of JWT handling, durable storage and the host application's user records.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.TokenProvider` — abstraction for JWT creation and decoding.

- :mod:`session_store`:
    Defines :class:`~.SessionStore`, :class:`~.SessionRecord` and the
    :class:`~.InMemorySessionStore` test double — atomic consume-or-fail storage.

- :mod:`identity_directory`:
    Defines :class:`~.IdentityDirectory` — current claims for a user id.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, Flask-JWT-Extended) live under
``authcore.infra``.
"""

from __future__ import annotations

from .identity_directory import IdentityDirectory, InMemoryIdentityDirectory
from .session_store import (
    InMemorySessionStore,
    SessionRecord,
    SessionStore,
    new_session_id,
)
from .token_provider import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, TokenProvider

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "TokenProvider",
    "SessionStore",
    "SessionRecord",
    "InMemorySessionStore",
    "new_session_id",
    "IdentityDirectory",
    "InMemoryIdentityDirectory",
]
