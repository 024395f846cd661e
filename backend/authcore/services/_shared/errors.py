"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask, HTTP, or a storage driver directly. They serve as stable contracts
between the session store adapters, the token provider and the services.

The translation to HTTP responses (RFC 7807) is handled by
``authcore/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from enum import Enum

# Single message for every rejected rotation: callers must not be able to
# tell an expired session from a detected replay.
SESSION_EXPIRED_MESSAGE = "Session expired, please log in again."


class RotationOutcome(Enum):
    """Outcome of a single ``rotate`` attempt."""

    ROTATED = "rotated"
    INVALID_TOKEN = "invalid_token"
    REUSED = "reused"
    IDENTITY_UNAVAILABLE = "identity_unavailable"


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer or BaseService will later translate them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


class InvalidTokenError(ServiceError):
    """
    Raised when a token is malformed, unsigned, tampered with, of the wrong
    type, or expired.

    Never retried automatically; the caller must re-authenticate.
    """

    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class UnauthorizedError(ServiceError):
    """
    Raised when a refresh token cannot be exchanged for a new pair.

    :param reason: Internal classification, for logs only. The message is
        identical for every reason.
    :type reason: RotationOutcome
    """

    def __init__(self, reason: RotationOutcome) -> None:
        super().__init__(SESSION_EXPIRED_MESSAGE)
        self.reason = reason


class StoreUnavailableError(ServiceError):
    """
    Raised when the session store cannot be reached or fails mid-operation.

    Transient: callers may retry with backoff but must not treat it as
    "not authenticated".
    """

    def __init__(self, message: str = "Session store unavailable") -> None:
        super().__init__(message)
