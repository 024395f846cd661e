"""
Transaction boundary shared by the session store's Units of Work.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from authcore.repositories import RefreshSessionRepository


class UnitOfWork(ABC):
    """
    One store operation = one Unit of Work = one database transaction.

    Writes staged through :attr:`refresh_sessions` become visible together on
    a clean exit and not at all on error, so a compound operation such as
    consume-and-replace is never observed half done.
    """

    refresh_sessions: RefreshSessionRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None:
        """Commit when the block exits cleanly; roll back otherwise."""

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
