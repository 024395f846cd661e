"""Session endpoints: refresh rotation, logout and access-token introspection.

The refresh token travels only in an HTTP-only cookie scoped to the auth
path; the access token is returned in the body and presented back as
``Authorization: Bearer``.
"""

from __future__ import annotations

from flask import Blueprint, Response, current_app, g, request

from authcore.api.deps import get_session_service, json_response, require_access_token, timing
from authcore.core.errors import APIError, Unauthorized, logged_problem_response
from authcore.schemas import TokenResponseSchema, WhoAmISchema
from authcore.services._shared.errors import (
    SESSION_EXPIRED_MESSAGE,
    StoreUnavailableError,
    UnauthorizedError,
)
from authcore.services._shared.ports.session_store import utcnow
from authcore.services.sessions import TokenPair

bp = Blueprint("auth", __name__, url_prefix="/auth")

token_schema = TokenResponseSchema()
whoami_schema = WhoAmISchema()


def _cookie_options() -> dict:
    cfg = current_app.config
    return {
        "path": cfg["REFRESH_COOKIE_PATH"],
        "secure": bool(cfg["REFRESH_COOKIE_SECURE"]),
        "httponly": True,
        "samesite": cfg["REFRESH_COOKIE_SAMESITE"],
    }


def set_refresh_cookie(response: Response, pair: TokenPair) -> Response:
    """Attach the refresh token of ``pair`` as the session cookie.

    Exposed so that login/registration endpoints of the host application can
    finish with the same cookie contract.
    """

    max_age = max(0, int((pair.refresh_expires_at - utcnow()).total_seconds()))
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        pair.refresh_token,
        max_age=max_age,
        expires=pair.refresh_expires_at,
        **_cookie_options(),
    )
    return response


def clear_refresh_cookie(response: Response) -> Response:
    """Expire the session cookie on the client."""

    response.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"], **_cookie_options())
    return response


def token_response(pair: TokenPair, *, status: int = 200) -> Response:
    """Body with the access token plus the rotated refresh cookie."""

    expires_in = int(current_app.config["ACCESS_TOKEN_TTL_MINUTES"]) * 60
    body = {"data": token_schema.dump({"access_token": pair.access_token, "expires_in": expires_in})}
    return set_refresh_cookie(json_response(body, status=status), pair)


def _unauthorized_clearing_cookie(err: APIError) -> Response:
    return clear_refresh_cookie(logged_problem_response(err.to_problem(), "APIError"))


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh cookie and return a new access token."""

    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    if not token:
        return _unauthorized_clearing_cookie(Unauthorized(SESSION_EXPIRED_MESSAGE))

    service = get_session_service()
    try:
        pair = service.rotate(token)
    except UnauthorizedError as exc:
        return _unauthorized_clearing_cookie(Unauthorized(str(exc)))
    except StoreUnavailableError as exc:
        # 503 keeps the cookie so the client can retry
        raise service.translate_exceptions(exc) from exc
    return token_response(pair)


@bp.post("/logout")
@timing
def logout():
    """End the current session. Always succeeds and always clears the cookie."""

    token = request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"])
    get_session_service().logout(token)
    return clear_refresh_cookie(json_response({"data": {"logged_out": True}}))


@bp.get("/whoami")
@require_access_token
@timing
def whoami():
    """Return the verified claims of the bearer access token."""

    return json_response({"data": whoami_schema.dump(g.access_claims)})
