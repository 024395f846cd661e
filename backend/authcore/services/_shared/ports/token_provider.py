from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenProvider(Protocol):
    """Port for signing and decoding JWTs.

    Implementations must fail closed: :meth:`decode` raises
    :class:`~authcore.services._shared.errors.InvalidTokenError` for every
    signature, structure or expiry problem and never returns partially
    verified claims.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str: ...

    def create_refresh_token(
        self,
        *,
        identity: str,
        expires_delta: timedelta,
        jti: str,
    ) -> str: ...

    def decode(self, token: str, *, expected_type: str) -> dict[str, Any]: ...
