# authcore/infra/redis/redis_session_store.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import cast

import redis  # type: ignore[import-untyped]
from redis.exceptions import ConnectionError as RedisConnectionError  # type: ignore[import-untyped]
from redis.exceptions import TimeoutError as RedisTimeoutError  # type: ignore[import-untyped]

from authcore.services._shared.errors import StoreUnavailableError
from authcore.services._shared.ports import SessionRecord, SessionStore, new_session_id
from authcore.services._shared.ports.session_store import utcnow

log = logging.getLogger(__name__)


def _s(value: bytes | str | None, default: str = "") -> str:
    """Decode a Redis reply (bytes unless ``decode_responses`` is set)."""
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisSessionStore(SessionStore):
    """
    Redis-backed refresh session store.

    Layout
    ------
    - ``sess:{session_id}`` hash ``{user_id, expires_at, created_at}`` with a
      key TTL equal to the remaining lifetime.
    - ``sess:u:{user_id}`` set of the user's session ids.

    Consumption uses WATCH/MULTI/EXEC (optimistic locking): the delete only
    commits if nobody touched the key since it was read, so concurrent
    consumers of one session linearize to a single winner.

    :param r: A Redis client (already connected).
    :param ttl: Session lifetime.
    """

    r: redis.Redis
    ttl: timedelta = timedelta(days=7)
    clock: Callable[[], datetime] = field(default=utcnow)

    # -------------------- helpers --------------------

    @staticmethod
    def _k(session_id: str) -> str:
        return f"sess:{session_id}"

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"sess:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> str:
        return f"{dt.timestamp():.6f}"

    @staticmethod
    def _from_ts(raw: bytes | None) -> datetime:
        return datetime.fromtimestamp(float(_s(raw, "0")), tz=UTC)

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Translate connectivity failures into the transient store error."""
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            log.error("redis_session_store.unavailable", exc_info=True)
            raise StoreUnavailableError() from exc

    def _record(self, session_id: str, h: dict[bytes, bytes]) -> SessionRecord:
        return SessionRecord(
            session_id=session_id,
            user_id=_s(h.get(b"user_id")),
            expires_at=self._from_ts(h.get(b"expires_at")),
            created_at=self._from_ts(h.get(b"created_at")),
        )

    def _new_record(self, user_id: str) -> SessionRecord:
        now = self.clock()
        return SessionRecord(
            session_id=new_session_id(),
            user_id=str(user_id),
            expires_at=now + self.ttl,
            created_at=now,
        )

    def _queue_insert(self, pipe, record: SessionRecord) -> None:
        key = self._k(record.session_id)
        pipe.hset(
            key,
            mapping={
                "user_id": record.user_id,
                "expires_at": self._to_ts(record.expires_at),
                "created_at": self._to_ts(record.created_at),
            },
        )
        pipe.expire(key, max(1, int(self.ttl.total_seconds())))
        pipe.sadd(self._ku(record.user_id), record.session_id)

    def _consume(self, session_id: str, user_id: str, successor: SessionRecord | None) -> bool:
        """
        WATCH the session key, check it, then delete it in MULTI/EXEC.

        ``successor`` is written in the same transaction, so the delete and
        the insert either both happen or neither does.
        """
        key = self._k(session_id)
        user_id = str(user_id)

        with self._guard():
            # Retry loop for optimistic locking in case of concurrent modifications
            while True:
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)

                        # In WATCH mode the pipeline executes immediately
                        h = cast(dict[bytes, bytes], p.hgetall(key))
                        if not h or _s(h.get(b"user_id")) != user_id:
                            p.unwatch()
                            return False
                        if self._record(session_id, h).is_expired(self.clock()):
                            p.unwatch()
                            return False

                        p.multi()
                        p.delete(key)
                        p.srem(self._ku(user_id), session_id)
                        if successor is not None:
                            self._queue_insert(p, successor)
                        deleted = p.execute()[0]
                    return int(deleted) == 1
                except redis.WatchError:
                    # Someone touched the key; re-read and decide again
                    continue

    # -------------------- API ------------------------

    def create(self, user_id: str) -> SessionRecord:
        """
        Insert the session *before* any JWT referencing it exists.
        """
        record = self._new_record(user_id)
        with self._guard():
            pipe = self.r.pipeline(transaction=True)
            self._queue_insert(pipe, record)
            pipe.execute()
        return record

    def consume_if_present(self, session_id: str, user_id: str) -> bool:
        return self._consume(session_id, user_id, None)

    def consume_and_replace(self, session_id: str, user_id: str) -> SessionRecord | None:
        successor = self._new_record(user_id)
        return successor if self._consume(session_id, user_id, successor) else None

    def delete(self, session_id: str, user_id: str) -> None:
        key = self._k(session_id)
        with self._guard():
            owner = self.r.hget(key, "user_id")
            if owner is None or _s(owner) != str(user_id):
                return
            with self.r.pipeline(transaction=True) as p:
                p.delete(key)
                p.srem(self._ku(str(user_id)), session_id)
                p.execute()

    def delete_all(self, user_id: str) -> int:
        key_u = self._ku(str(user_id))
        with self._guard():
            while True:
                try:
                    with self.r.pipeline() as p:
                        # Watch the index so a concurrent create is not orphaned
                        p.watch(key_u)
                        members = [_s(m) for m in p.smembers(key_u)]
                        p.multi()
                        for sid in members:
                            p.delete(self._k(sid))
                        p.delete(key_u)
                        out = cast(list[int], p.execute())
                    return sum(int(n) for n in out[: len(members)])
                except redis.WatchError:
                    continue

    def purge_expired(self, now: datetime | None = None) -> int:
        """
        Drop expired sessions and index entries whose hash already expired.

        Key TTLs do most of the work; this sweep keeps the per-user indexes
        from accumulating stale ids.
        """
        cutoff = now or self.clock()
        removed = 0
        with self._guard():
            for raw_key in self.r.scan_iter(match=self._ku("*")):
                key_u = _s(raw_key)
                for sid in sorted(_s(m) for m in self.r.smembers(key_u)):
                    h = cast(dict[bytes, bytes], self.r.hgetall(self._k(sid)))
                    if h and not self._record(sid, h).is_expired(cutoff):
                        continue
                    with self.r.pipeline(transaction=True) as p:
                        p.delete(self._k(sid))
                        p.srem(key_u, sid)
                        p.execute()
                    removed += 1
        return removed

    def list_active(self, user_id: str) -> list[SessionRecord]:
        key_u = self._ku(str(user_id))
        now = self.clock()
        records: list[SessionRecord] = []
        with self._guard():
            for sid in sorted(_s(m) for m in self.r.smembers(key_u)):
                h = cast(dict[bytes, bytes], self.r.hgetall(self._k(sid)))
                if not h:
                    continue
                rec = self._record(sid, h)
                if not rec.is_expired(now):
                    records.append(rec)
        return sorted(records, key=lambda rec: rec.created_at)
