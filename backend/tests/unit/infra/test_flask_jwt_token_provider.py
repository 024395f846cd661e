"""Unit tests for the Flask-JWT-Extended token provider adapter."""

from __future__ import annotations

from datetime import timedelta

import pytest
from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider
from authcore.services._shared.errors import InvalidTokenError
from authcore.services._shared.ports import ACCESS_TOKEN_TYPE, REFRESH_TOKEN_TYPE, new_session_id


@pytest.fixture
def provider(app):
    return JWTTokenProvider()


def test_refresh_token_embeds_the_session_id_as_jti(provider):
    sid = new_session_id()
    token = provider.create_refresh_token(identity="7", expires_delta=timedelta(days=1), jti=sid)

    claims = provider.decode(token, expected_type=REFRESH_TOKEN_TYPE)
    assert claims["jti"] == sid
    assert claims["sub"] == "7"
    assert claims["type"] == REFRESH_TOKEN_TYPE


def test_identity_is_always_a_string(provider):
    token = provider.create_access_token(identity=7)  # type: ignore[arg-type]
    assert provider.decode(token, expected_type=ACCESS_TOKEN_TYPE)["sub"] == "7"


def test_wrong_type_is_rejected(provider):
    token = provider.create_access_token(identity="7")
    with pytest.raises(InvalidTokenError, match="Wrong token type"):
        provider.decode(token, expected_type=REFRESH_TOKEN_TYPE)


def test_non_string_token_is_rejected(provider):
    with pytest.raises(InvalidTokenError):
        provider.decode(None, expected_type=ACCESS_TOKEN_TYPE)  # type: ignore[arg-type]
