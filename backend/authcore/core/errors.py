"""Centralized JSON (RFC 7807) error handling for the API."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from authcore.core.logger import ensure_request_id

log = logging.getLogger(__name__)

# Stable error codes for the statuses this API actually emits.
ERROR_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}

BEARER_CHALLENGE = 'Bearer realm="authcore"'


def error_code_for(status: int) -> str:
    return ERROR_CODES.get(status, "error")


def _as_problem(
    *,
    status: int,
    message: str,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build an RFC 7807 Problem Details dict.

    :param status: HTTP status code.
    :param message: Human-readable error summary (safe for clients).
    :param code: Stable machine-consumable error code; derived from ``status``
        when omitted.
    :param details: Optional safe, structured details.
    :returns: Problem+JSON dictionary carrying the request id.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": message,
        "instance": request.path if request else None,
        "code": code or error_code_for(status),
    }
    if details:
        problem["details"] = details
    problem["request_id"] = ensure_request_id()
    return problem


def problem_response(problem: dict[str, Any]) -> Response:
    """
    Return an ``application/problem+json`` response for ``problem``.

    401 responses carry a ``WWW-Authenticate`` bearer challenge.
    """
    resp = jsonify(problem)
    resp.status_code = int(problem.get("status", HTTPStatus.INTERNAL_SERVER_ERROR))
    resp.mimetype = "application/problem+json"
    if resp.status_code == HTTPStatus.UNAUTHORIZED:
        resp.headers["WWW-Authenticate"] = BEARER_CHALLENGE
    return resp


def logged_problem_response(
    problem: dict[str, Any], label: str, *, exc_info: bool = False
) -> Response:
    """Log a problem (5xx as error, 4xx as warning) and wrap it in a response."""
    status = int(problem["status"])
    level = log.error if status >= 500 else log.warning
    level(
        "%s: code=%s status=%s detail=%s request_id=%s",
        label,
        problem["code"],
        status,
        problem["detail"],
        problem["request_id"],
        exc_info=exc_info,
    )
    return problem_response(problem)


class APIError(Exception):
    """
    Represent a JSON-serializable API error.

    Parameters
    ----------
    message : str
        Human-readable description presented to clients.
    status_code : int, optional
        HTTP status code to return. Defaults to ``400``.
    code : str, optional
        Machine-readable identifier. Defaults to the code for ``status_code``.
    details : dict[str, Any] | None, optional
        Optional structured payload included in the response body.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 400,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.code = code or error_code_for(self.status_code)
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return _as_problem(
            status=self.status_code,
            code=self.code,
            message=self.message,
            details=self.details or None,
        )


class Unauthorized(APIError):
    """401 when authentication fails or a session can no longer be refreshed."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status_code=HTTPStatus.UNAUTHORIZED)


class ServiceUnavailable(APIError):
    """503 when the session store cannot be reached; clients may retry."""

    def __init__(self, message: str = "Service temporarily unavailable") -> None:
        super().__init__(message, status_code=HTTPStatus.SERVICE_UNAVAILABLE)


def init_app(app: Flask) -> None:
    """
    Attach JSON error handlers to the Flask app.

    Notes
    -----
    - Every handled error becomes an RFC 7807 body with a ``request_id``.
    - Internal details never reach clients; 5xx are logged with ``exc_info``.
    """

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        return logged_problem_response(err.to_problem(), "APIError")

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = _as_problem(
            status=HTTPStatus.UNPROCESSABLE_ENTITY,
            message="Validation failed",
            details={"fields": err.normalized_messages()},
        )
        return logged_problem_response(problem, "ValidationError")

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND and request:
            message = f"Route '{request.path}' not found"
        else:
            message = (err.description or HTTPStatus(status).phrase).strip()
        problem = _as_problem(status=status, message=message)
        return logged_problem_response(problem, "HTTPException")

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        # Database unreachable outside the session store's own translation.
        problem = _as_problem(
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            message="Service temporarily unavailable",
        )
        return logged_problem_response(problem, "OperationalError", exc_info=True)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        problem = _as_problem(
            status=HTTPStatus.INTERNAL_SERVER_ERROR,
            message="Unexpected error",
        )
        return logged_problem_response(problem, "Unhandled exception", exc_info=True)
