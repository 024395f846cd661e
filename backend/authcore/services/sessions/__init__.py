"""Session lifecycle: access token issuing, refresh rotation, revocation."""

from __future__ import annotations

from .dto import AccessClaims, IdentityClaims, RefreshEnvelope, SessionTokenConfig, TokenPair
from .issuer import AccessTokenIssuer
from .service import SessionService

__all__ = [
    "AccessClaims",
    "AccessTokenIssuer",
    "IdentityClaims",
    "RefreshEnvelope",
    "SessionService",
    "SessionTokenConfig",
    "TokenPair",
]
