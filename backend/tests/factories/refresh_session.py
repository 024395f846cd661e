"""Factory Boy definition for :class:`authcore.models.refresh_session.RefreshSession`."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import factory
from authcore.models.refresh_session import RefreshSession
from authcore.services._shared.ports import new_session_id
from tests.factories import BaseFactory


class RefreshSessionFactory(BaseFactory):
    """
    Build persisted :class:`RefreshSession` rows.

    Notes
    -----
    - Defaults to a live session created now and expiring in seven days.
    - Pass ``expires_at`` in the past to seed expired rows.
    """

    class Meta:
        model = RefreshSession

    id = None  # let autoincrement handle it
    session_id = factory.LazyFunction(new_session_id)
    user_id = factory.Sequence(lambda n: f"user-{n}")
    created_at = factory.LazyFunction(lambda: datetime.now(UTC))
    expires_at = factory.LazyAttribute(lambda o: o.created_at + timedelta(days=7))
