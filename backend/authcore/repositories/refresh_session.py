"""Refresh session repository: conditional deletes that report what they did."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select

from authcore.models.refresh_session import RefreshSession
from authcore.repositories.base import BaseRepository


class RefreshSessionRepository(BaseRepository[RefreshSession]):
    """Persistence-only repository for :class:`RefreshSession`.

    Every mutating method issues a single ``DELETE`` and returns the affected
    row count; the caller decides what that count means.
    """

    model = RefreshSession

    def delete_live(self, session_id: str, user_id: str, now: datetime) -> int:
        """
        Delete the row only if it matches both ids and has not expired.

        This is the atomic consume primitive: check and write happen in one
        statement, so two concurrent callers cannot both see ``1``.
        """
        return self._delete_where(
            RefreshSession.session_id == session_id,
            RefreshSession.user_id == user_id,
            RefreshSession.expires_at > now,
        )

    def delete_one(self, session_id: str, user_id: str) -> int:
        return self._delete_where(
            RefreshSession.session_id == session_id,
            RefreshSession.user_id == user_id,
        )

    def delete_for_user(self, user_id: str) -> int:
        return self._delete_where(RefreshSession.user_id == user_id)

    def delete_expired(self, now: datetime) -> int:
        return self._delete_where(RefreshSession.expires_at <= now)

    def list_live_for_user(self, user_id: str, now: datetime) -> list[RefreshSession]:
        """Non-expired rows of a user, oldest first."""
        stmt = (
            select(RefreshSession)
            .where(RefreshSession.user_id == user_id, RefreshSession.expires_at > now)
            .order_by(RefreshSession.created_at.asc(), RefreshSession.id.asc())
        )
        return self._all(stmt)
