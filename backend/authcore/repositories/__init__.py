"""Repository package exposing persistence-layer access for session records."""

from __future__ import annotations

from authcore.repositories.base import BaseRepository
from authcore.repositories.refresh_session import RefreshSessionRepository

__all__ = [
    "BaseRepository",
    "RefreshSessionRepository",
]
