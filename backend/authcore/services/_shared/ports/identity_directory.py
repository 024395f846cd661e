from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from authcore.services.sessions.dto import IdentityClaims


class IdentityDirectory(Protocol):
    """
    Port onto the host application's user records.

    Rotation re-reads the identity so that a new access token reflects the
    current email/role, and so that deleted or deactivated accounts stop
    refreshing.
    """

    def load_claims(self, user_id: str) -> IdentityClaims | None:
        """Return current claims, or ``None`` if the user is gone or deactivated."""


class InMemoryIdentityDirectory(IdentityDirectory):
    """Dictionary-backed directory used in tests and small embeddings."""

    def __init__(self) -> None:
        self._claims: dict[str, IdentityClaims] = {}
        self._deactivated: set[str] = set()
        self._lock = threading.Lock()

    def put(self, claims: IdentityClaims) -> None:
        with self._lock:
            self._claims[claims.user_id] = claims
            self._deactivated.discard(claims.user_id)

    def deactivate(self, user_id: str) -> None:
        with self._lock:
            self._deactivated.add(str(user_id))

    def remove(self, user_id: str) -> None:
        with self._lock:
            self._claims.pop(str(user_id), None)

    def load_claims(self, user_id: str) -> IdentityClaims | None:
        with self._lock:
            if user_id in self._deactivated:
                return None
            return self._claims.get(user_id)
