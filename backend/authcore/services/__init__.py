"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`authcore.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``authcore.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Session service (from ``authcore.services.sessions``)
    * :class:`SessionService`, :class:`AccessTokenIssuer`
    * DTOs: :class:`IdentityClaims`, :class:`AccessClaims`,
      :class:`RefreshEnvelope`, :class:`TokenPair`, :class:`SessionTokenConfig`
"""

from __future__ import annotations

# Base primitives (service base + request-scoped context)
from ._shared.base import BaseService, ServiceContext

# Session service + DTOs
from .sessions import (
    AccessClaims,
    AccessTokenIssuer,
    IdentityClaims,
    RefreshEnvelope,
    SessionService,
    SessionTokenConfig,
    TokenPair,
)

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Sessions
    "SessionService",
    "AccessTokenIssuer",
    "IdentityClaims",
    "AccessClaims",
    "RefreshEnvelope",
    "TokenPair",
    "SessionTokenConfig",
]
