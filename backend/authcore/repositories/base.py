"""Generic repository base for SQLAlchemy 2.x.

Repositories are persistence-only:

* they resolve a session (the Unit of Work's, or the Flask-scoped one);
* they stage, query and delete rows;
* they never commit or roll back. The Unit of Work owns the transaction.

Deletes are issued as bulk ``DELETE ... WHERE`` statements that return the
affected row count, so a caller can act on "did this row exist" without a
separate read.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar, cast

from sqlalchemy import CursorResult, Select, delete
from sqlalchemy.orm import Session

from authcore.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


class BaseRepository(Generic[E]):
    """Repository for a single mapped class.

    Subclasses set ``model``.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope. Falls
            back to ``db.session`` when omitted.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is populated."""
        self.session.add(instance)
        self.flush()
        return instance

    def flush(self) -> None:
        self.session.flush()

    # ------------------------------- helpers ---------------------------------

    def _all(self, stmt: Select[Any]) -> list[E]:
        return list(self.session.execute(stmt).scalars().all())

    def _delete_where(self, *criteria: Any) -> int:
        """Run one ``DELETE`` over ``model`` and return the affected row count.

        ``synchronize_session=False``: rows already loaded in the session are
        left untouched, callers re-query if they need fresh state.
        """
        stmt = delete(self.model).where(*criteria).execution_options(synchronize_session=False)
        result = cast(CursorResult[Any], self.session.execute(stmt))
        return int(result.rowcount or 0)
