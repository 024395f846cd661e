"""Configuration selection and signing-key validation."""

from __future__ import annotations

import pytest
from authcore.core.config import (
    DEV_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    env_int,
    get_config,
    validate_signing_config,
)
from authcore.factory import build_session_store, create_app


def test_get_config_follows_app_env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "production")
    assert get_config() is ProductionConfig
    monkeypatch.setenv("APP_ENV", "testing")
    assert get_config() is TestingConfig
    monkeypatch.setenv("APP_ENV", "unknown")
    assert get_config() is DevelopmentConfig


@pytest.mark.parametrize("raw, expected", [("30", 30), ("", 7), ("abc", 7), ("-1", 7), ("0", 7)])
def test_env_int_falls_back_on_invalid(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_TTL", raw)
    assert env_int("SOME_TTL", 7) == expected


def test_defaults_match_session_policy():
    assert DevelopmentConfig.ACCESS_TOKEN_TTL_MINUTES == 15
    assert DevelopmentConfig.REFRESH_TOKEN_TTL_DAYS == 7
    assert DevelopmentConfig.REFRESH_COOKIE_NAME == "refresh_token"
    assert DevelopmentConfig.REFRESH_COOKIE_PATH == "/api/v1/auth"
    assert ProductionConfig.REFRESH_COOKIE_SECURE is True


def test_empty_secret_is_fatal_everywhere():
    with pytest.raises(RuntimeError):
        validate_signing_config({"JWT_SECRET_KEY": "", "APP_ENV": "development"})


@pytest.mark.parametrize("secret", [DEV_JWT_SECRET, "short-secret"])
def test_weak_secret_is_fatal_in_production(secret):
    with pytest.raises(RuntimeError):
        validate_signing_config({"JWT_SECRET_KEY": secret, "APP_ENV": "production"})


def test_strong_secret_passes_in_production():
    validate_signing_config({"JWT_SECRET_KEY": "x" * 48, "APP_ENV": "production"})


def test_dev_placeholder_allowed_outside_production():
    validate_signing_config({"JWT_SECRET_KEY": DEV_JWT_SECRET, "APP_ENV": "development"})


def test_create_app_refuses_weak_production_key():
    class WeakProduction(ProductionConfig):
        JWT_SECRET_KEY = "too-short"
        SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
        REDIS_URL = None
        SESSION_STORE_BACKEND = "sqlalchemy"

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        create_app(WeakProduction)


def test_redis_backend_without_url_is_fatal():
    class RedisWithoutUrl(TestingConfig):
        JWT_SECRET_KEY = "x" * 48
        SESSION_STORE_BACKEND = "redis"
        REDIS_URL = None

    with pytest.raises(RuntimeError, match="REDIS_URL"):
        create_app(RedisWithoutUrl)


def test_unknown_store_backend_is_rejected(app, monkeypatch):
    monkeypatch.setitem(app.config, "SESSION_STORE_BACKEND", "carrier-pigeon")
    with pytest.raises(RuntimeError, match="SESSION_STORE_BACKEND"):
        build_session_store(app)
