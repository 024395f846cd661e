"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from authcore.core.errors import Unauthorized
from authcore.core.logger import ensure_request_id
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.errors import InvalidTokenError
from authcore.services.sessions import AccessClaims, SessionService

F = TypeVar("F", bound=Callable[..., Any])

SESSION_SERVICE_EXTENSION = "session_service"


def get_session_service() -> SessionService:
    """Build a :class:`SessionService` bound to the current request context.

    Collaborators (token provider, store, identity directory, lifetimes) are
    wired once by the application factory and stored in ``app.extensions``.
    """

    factory = cast(
        Callable[[ServiceContext], SessionService],
        current_app.extensions[SESSION_SERVICE_EXTENSION],
    )
    return factory(ServiceContext(request_id=ensure_request_id(), remote_addr=request.remote_addr))


def bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>`` if present."""

    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def require_access_token(func: F) -> F:
    """Verify the bearer access token and expose its claims as ``g.access_claims``.

    Verification is stateless: signature, type and expiry only.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        token = bearer_token()
        if token is None:
            raise Unauthorized("Missing bearer token")
        service = get_session_service()
        try:
            claims: AccessClaims = service.verify_access_token(token)
        except InvalidTokenError as exc:
            raise service.translate_exceptions(exc) from exc
        g.access_claims = claims
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
