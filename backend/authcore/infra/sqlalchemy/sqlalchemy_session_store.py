# authcore/infra/sqlalchemy/sqlalchemy_session_store.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from sqlalchemy.exc import DBAPIError, OperationalError

from authcore.models.refresh_session import RefreshSession
from authcore.services._shared.errors import StoreUnavailableError
from authcore.services._shared.ports import SessionRecord, SessionStore, new_session_id
from authcore.services._shared.ports.session_store import as_utc, utcnow
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _to_record(row: RefreshSession) -> SessionRecord:
    return SessionRecord(
        session_id=row.session_id,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        created_at=as_utc(row.created_at),
    )


@dataclass(slots=True)
class SQLAlchemySessionStore(SessionStore):
    """
    Relational session store, one row per outstanding refresh session.

    Every method runs in its own Unit of Work and commits before returning.
    Consumption is a single conditional ``DELETE`` whose row count is the
    answer, so the database serializes concurrent consumers of one session.

    .. note::
       Requires an active Flask app context (the UoW binds to ``db.session``).
    """

    ttl: timedelta = timedelta(days=7)
    clock: Callable[[], datetime] = field(default=utcnow)
    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = field(default=SQLAlchemyUnitOfWork)
    ro_uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = field(
        default=SQLAlchemyReadOnlyUnitOfWork
    )

    @contextmanager
    def _guard(self) -> Iterator[None]:
        """Translate driver/connectivity failures into the transient store error."""
        try:
            yield
        except (OperationalError, DBAPIError) as exc:
            log.error("sqlalchemy_session_store.unavailable", exc_info=True)
            raise StoreUnavailableError() from exc

    def _new_row(self, user_id: str, now: datetime) -> RefreshSession:
        return RefreshSession(
            session_id=new_session_id(),
            user_id=str(user_id),
            expires_at=now + self.ttl,
            created_at=now,
        )

    def create(self, user_id: str) -> SessionRecord:
        row = self._new_row(user_id, self.clock())
        record = _to_record(row)
        with self._guard(), self.uow_factory() as uow:
            uow.refresh_sessions.add(row)
        return record

    def consume_if_present(self, session_id: str, user_id: str) -> bool:
        with self._guard(), self.uow_factory() as uow:
            deleted = uow.refresh_sessions.delete_live(session_id, str(user_id), self.clock())
        return deleted == 1

    def consume_and_replace(self, session_id: str, user_id: str) -> SessionRecord | None:
        """
        Conditional ``DELETE`` and successor ``INSERT`` in one transaction.

        If the insert or the commit fails, the delete is rolled back with it.
        """
        now = self.clock()
        row = self._new_row(user_id, now)
        record = _to_record(row)
        with self._guard(), self.uow_factory() as uow:
            if uow.refresh_sessions.delete_live(session_id, str(user_id), now) != 1:
                return None
            uow.refresh_sessions.add(row)
        return record

    def delete(self, session_id: str, user_id: str) -> None:
        with self._guard(), self.uow_factory() as uow:
            uow.refresh_sessions.delete_one(session_id, str(user_id))

    def delete_all(self, user_id: str) -> int:
        with self._guard(), self.uow_factory() as uow:
            return uow.refresh_sessions.delete_for_user(str(user_id))

    def purge_expired(self, now: datetime | None = None) -> int:
        with self._guard(), self.uow_factory() as uow:
            return uow.refresh_sessions.delete_expired(now or self.clock())

    def list_active(self, user_id: str) -> list[SessionRecord]:
        with self._guard(), self.ro_uow_factory() as uow:
            rows = uow.refresh_sessions.list_live_for_user(str(user_id), self.clock())
            return [_to_record(row) for row in rows]
