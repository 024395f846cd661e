from __future__ import annotations

import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

# 32 random bytes -> 256 bits of entropy, URL-safe for JWT ``jti`` claims
SESSION_ID_BYTES = 32


def new_session_id() -> str:
    """Generate an unguessable refresh session identifier."""
    return secrets.token_urlsafe(SESSION_ID_BYTES)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(dt: datetime) -> datetime:
    """Label naive datetimes (e.g. read back from SQLite) as UTC."""
    return dt.replace(tzinfo=UTC) if dt.tzinfo is None else dt.astimezone(UTC)


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """
    Read-model for one outstanding refresh session.

    :ivar session_id: Unique, unguessable identifier (the refresh ``jti``).
    :ivar user_id: Owning user (non-owning reference).
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Creation instant (UTC).
    """

    session_id: str
    user_id: str
    expires_at: datetime
    created_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return as_utc(self.expires_at) <= (now or utcnow())


class SessionStore(Protocol):
    """
    Durable table of outstanding refresh sessions.

    A record's existence is the sole authority for "this refresh token is
    still usable". Expired records are treated as absent by every operation
    even before :meth:`purge_expired` physically removes them. Every write is
    committed before the method returns.
    """

    def create(self, user_id: str) -> SessionRecord:
        """Insert a new session with the store's TTL and return it."""

    def consume_if_present(self, session_id: str, user_id: str) -> bool:
        """
        Atomically delete the matching, non-expired session.

        MUST be a single atomic operation against the store (no read followed
        by a separate delete): of N concurrent callers for the same
        ``session_id`` at most one observes ``True``.

        :returns: ``True`` if a record existed and was deleted.
        """

    def consume_and_replace(self, session_id: str, user_id: str) -> SessionRecord | None:
        """
        Consume the matching, non-expired session and create its successor.

        Both writes commit together or not at all. A failure part-way leaves
        the old session in place, so the caller can retry without the retry
        looking like a replay.

        :returns: The successor record, or ``None`` if nothing was consumed
            (in which case nothing was created either).
        """

    def delete(self, session_id: str, user_id: str) -> None:
        """Remove one session if present (idempotent)."""

    def delete_all(self, user_id: str) -> int:
        """
        Remove every session of a user.

        :returns: Number of sessions removed.
        """

    def purge_expired(self, now: datetime | None = None) -> int:
        """Physically remove expired sessions. :returns: rows removed."""

    def list_active(self, user_id: str) -> list[SessionRecord]:
        """Non-expired sessions of a user, oldest first."""


class InMemorySessionStore(SessionStore):
    """
    In-memory session store with atomic consumption.

    .. note::
       Uses a threading lock to provide atomicity in unit tests. It is a
       process-local singleton and must not back a multi-instance deployment.
    """

    def __init__(
        self,
        *,
        ttl: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.ttl = ttl
        self._clock = clock
        self._by_id: dict[str, SessionRecord] = {}
        self._lock = threading.Lock()

    def _new_record(self, user_id: str) -> SessionRecord:
        now = self._clock()
        return SessionRecord(
            session_id=new_session_id(),
            user_id=str(user_id),
            expires_at=now + self.ttl,
            created_at=now,
        )

    def _consume_locked(self, session_id: str, user_id: str) -> bool:
        record = self._by_id.get(session_id)
        if record is None or record.user_id != str(user_id):
            return False
        del self._by_id[session_id]
        return not record.is_expired(self._clock())

    def create(self, user_id: str) -> SessionRecord:
        record = self._new_record(user_id)
        with self._lock:
            self._by_id[record.session_id] = record
        return record

    def consume_if_present(self, session_id: str, user_id: str) -> bool:
        with self._lock:
            return self._consume_locked(session_id, user_id)

    def consume_and_replace(self, session_id: str, user_id: str) -> SessionRecord | None:
        successor = self._new_record(user_id)
        with self._lock:
            if not self._consume_locked(session_id, user_id):
                return None
            self._by_id[successor.session_id] = successor
        return successor

    def delete(self, session_id: str, user_id: str) -> None:
        with self._lock:
            record = self._by_id.get(session_id)
            if record is not None and record.user_id == str(user_id):
                del self._by_id[session_id]

    def delete_all(self, user_id: str) -> int:
        with self._lock:
            doomed = [sid for sid, rec in self._by_id.items() if rec.user_id == str(user_id)]
            for sid in doomed:
                del self._by_id[sid]
            return len(doomed)

    def purge_expired(self, now: datetime | None = None) -> int:
        cutoff = now or self._clock()
        with self._lock:
            doomed = [sid for sid, rec in self._by_id.items() if rec.is_expired(cutoff)]
            for sid in doomed:
                del self._by_id[sid]
            return len(doomed)

    def list_active(self, user_id: str) -> list[SessionRecord]:
        now = self._clock()
        with self._lock:
            records = [
                rec
                for rec in self._by_id.values()
                if rec.user_id == str(user_id) and not rec.is_expired(now)
            ]
        return sorted(records, key=lambda rec: rec.created_at)
