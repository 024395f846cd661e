"""Unit tests for AccessTokenIssuer (signing and fail-closed verification)."""

from __future__ import annotations

import time
from datetime import timedelta

import jwt
import pytest
from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.services._shared.errors import InvalidTokenError
from authcore.services.sessions import AccessTokenIssuer, IdentityClaims

CLAIMS = IdentityClaims(user_id="42", email="ada@example.com", role="USER")


@pytest.fixture
def issuer(app):
    return AccessTokenIssuer(token_provider=JWTTokenProvider())


def _forge(app, **overrides) -> str:
    """Sign a payload directly with PyJWT using the app's key unless overridden."""
    now = int(time.time())
    payload = {
        "sub": "42",
        "email": "ada@example.com",
        "role": "USER",
        "iat": now,
        "nbf": now,
        "exp": now + 600,
        "jti": "forged",
        "type": "access",
        "fresh": False,
    }
    key = overrides.pop("_key", app.config["JWT_SECRET_KEY"])
    payload.update(overrides)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, key, algorithm="HS256")


def test_issue_then_verify_roundtrip(issuer):
    claims = issuer.verify(issuer.issue(CLAIMS))

    assert claims.user_id == "42"
    assert claims.email == "ada@example.com"
    assert claims.role == "USER"
    assert claims.expires_at - claims.issued_at == timedelta(minutes=15)


def test_lifetime_is_configurable(app):
    issuer = AccessTokenIssuer(token_provider=JWTTokenProvider(), access_expires=timedelta(minutes=2))
    claims = issuer.verify(issuer.issue(CLAIMS))
    assert claims.expires_at - claims.issued_at == timedelta(minutes=2)


def test_expired_token_is_rejected(app):
    issuer = AccessTokenIssuer(
        token_provider=JWTTokenProvider(), access_expires=timedelta(seconds=-30)
    )
    with pytest.raises(InvalidTokenError):
        issuer.verify(issuer.issue(CLAIMS))


def test_foreign_signature_is_rejected(app, issuer):
    token = _forge(app, _key="some-other-key-that-is-long-enough-0123456789")
    with pytest.raises(InvalidTokenError):
        issuer.verify(token)


def test_tampered_payload_is_rejected(issuer):
    header, payload, signature = issuer.issue(CLAIMS).split(".")
    other_payload = issuer.issue(
        IdentityClaims(user_id="1", email="root@example.com", role="ADMIN")
    ).split(".")[1]

    with pytest.raises(InvalidTokenError):
        issuer.verify(f"{header}.{other_payload}.{signature}")


@pytest.mark.parametrize("token", ["", "   ", "not.a.jwt", "abc"])
def test_malformed_token_is_rejected(issuer, token):
    with pytest.raises(InvalidTokenError):
        issuer.verify(token)


def test_missing_identity_claims_are_rejected(app, issuer):
    with pytest.raises(InvalidTokenError):
        issuer.verify(_forge(app, email=None))


def test_refresh_type_is_rejected(app, issuer):
    with pytest.raises(InvalidTokenError):
        issuer.verify(_forge(app, type="refresh"))


def test_forged_token_with_valid_key_is_accepted(app, issuer):
    # Sanity check for the helper: a correct payload verifies
    assert issuer.verify(_forge(app)).user_id == "42"
