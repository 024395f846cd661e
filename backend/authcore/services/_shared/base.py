# authcore/services/_shared/base.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from authcore.core import errors as api_errors
from authcore.core.logger import log_security_event
from authcore.services._shared.errors import (
    InvalidTokenError,
    ServiceError,
    StoreUnavailableError,
    UnauthorizedError,
)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data (request ids, client hints).

    :param request_id: Correlation id for logging/tracing.
    :param remote_addr: Client address as seen by the HTTP adapter.
    """

    request_id: str | None = None
    remote_addr: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Carry the request-scoped :class:`ServiceContext` into security events.
    * Centralize the translation of service errors to API errors.

    Notes
    -----
    - Services never touch the global session; storage sits behind ports.
    - Services never import Flask request objects.
    """

    def __init__(self, *, ctx: ServiceContext | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context (tracing).
        :type ctx: ServiceContext | None
        """
        self.ctx = ctx or ServiceContext()

    def _security_event(self, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
        """Emit ``event`` tagged with the caller's request id and address, when known."""
        if self.ctx.request_id is not None:
            fields.setdefault("request_id", self.ctx.request_id)
        if self.ctx.remote_addr is not None:
            fields.setdefault("remote_addr", self.ctx.remote_addr)
        log_security_event(event, level=level, **fields)

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, (InvalidTokenError, UnauthorizedError)):
            # → 401; the message is already uniform for rotation failures
            return api_errors.Unauthorized(str(exc))

        if isinstance(exc, StoreUnavailableError):
            # → 503, retryable
            return api_errors.ServiceUnavailable(str(exc))

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to Flask handler)
        return exc
