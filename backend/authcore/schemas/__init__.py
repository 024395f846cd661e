"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import SessionSchema, TokenResponseSchema, WhoAmISchema

__all__ = [
    "SessionSchema",
    "TokenResponseSchema",
    "WhoAmISchema",
]
