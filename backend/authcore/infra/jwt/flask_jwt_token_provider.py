# authcore/infra/jwt/flask_jwt_token_provider.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, cast

from flask_jwt_extended import create_access_token as _create_access
from flask_jwt_extended import create_refresh_token as _create_refresh
from flask_jwt_extended import decode_token as _decode
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from authcore.services._shared.errors import InvalidTokenError
from authcore.services._shared.ports import TokenProvider

REQUIRED_CLAIMS = ("sub", "jti", "exp", "iat", "type")


@dataclass(slots=True)
class JWTTokenProvider(TokenProvider):
    """
    Adapter for Flask-JWT-Extended.

    .. note::
       Requires an active Flask app context with proper JWT settings.
       Signing is pure computation over the configured secret; nothing here
       touches shared mutable state.
    """

    def create_access_token(
        self,
        *,
        identity: str,
        additional_claims: dict[str, Any] | None = None,
        expires_delta: timedelta | None = None,
    ) -> str:
        return cast(
            str,
            _create_access(
                identity=str(identity),
                additional_claims=additional_claims or {},
                expires_delta=expires_delta,
                fresh=False,
            ),
        )

    def create_refresh_token(
        self,
        *,
        identity: str,
        expires_delta: timedelta,
        jti: str,
    ) -> str:
        # The refresh jti MUST be the session id issued by the store, so the
        # rotate endpoint can consume exactly that record.
        token = cast(
            str,
            _create_refresh(
                identity=str(identity),
                additional_claims={"jti": jti},
                expires_delta=expires_delta,
            ),
        )

        # Fail fast if the library ever overrides our jti.
        actual = cast(dict[str, Any], _decode(token))["jti"]
        if actual != jti:
            raise RuntimeError("Refresh token jti mismatch after creation.")

        return token

    def decode(self, token: str, *, expected_type: str) -> dict[str, Any]:
        """
        Verify signature and expiry and return the claims.

        :raises InvalidTokenError: On any decoding problem, a missing claim, or
            a token of another type (e.g. a refresh token used as access token).
        """
        if not isinstance(token, str) or not token.strip():
            raise InvalidTokenError()
        try:
            claims = cast(dict[str, Any], _decode(token))
        except (PyJWTError, JWTExtendedException) as exc:
            raise InvalidTokenError() from exc

        if any(claims.get(name) in (None, "") for name in REQUIRED_CLAIMS):
            raise InvalidTokenError()
        if claims["type"] != expected_type:
            raise InvalidTokenError("Wrong token type")
        return claims
