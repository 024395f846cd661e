"""Refresh session model: one row per outstanding, unconsumed refresh token."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin


class RefreshSession(PKMixin, ReprMixin, db.Model):
    """
    Durable refresh-session record.

    The row's existence is the only proof that the matching refresh token
    may still be exchanged. Rotation, logout and theft containment all end
    the session by deleting the row; nothing is ever flagged in place.

    Fields
    ------
    session_id : str
        Unguessable identifier embedded as the refresh token ``jti``.
    user_id : str
        Owning user. Plain reference; user lifecycle lives elsewhere.
    expires_at : datetime
        Absolute expiry. Past this instant the row counts as absent.
    created_at : datetime
        Insertion instant.
    """

    __tablename__ = "refresh_sessions"

    session_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("session_id", name="uq_refresh_sessions_session_id"),
        Index("ix_refresh_sessions_user_id", "user_id"),
        Index("ix_refresh_sessions_expires_at", "expires_at"),
    )
