"""Application factory wiring Flask extensions, the session service and blueprints."""

from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask

from authcore.core.config import BaseConfig, get_config
from authcore.core.logger import configure_logging, init_app as init_logging
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.ports import (
    IdentityDirectory,
    InMemoryIdentityDirectory,
    InMemorySessionStore,
    SessionStore,
)
from authcore.services.sessions import SessionService, SessionTokenConfig

log = logging.getLogger(__name__)

SESSION_STORE_BACKENDS = ("sqlalchemy", "redis", "memory")


def build_session_store(app: Flask) -> SessionStore:
    """Instantiate the configured :class:`SessionStore` adapter.

    :raises RuntimeError: On an unknown ``SESSION_STORE_BACKEND``.
    """

    ttl = timedelta(days=int(app.config["REFRESH_TOKEN_TTL_DAYS"]))
    backend = str(app.config.get("SESSION_STORE_BACKEND", "sqlalchemy")).lower()

    if backend == "sqlalchemy":
        from authcore.infra.sqlalchemy.sqlalchemy_session_store import SQLAlchemySessionStore

        return SQLAlchemySessionStore(ttl=ttl)
    if backend == "redis":
        from authcore.core.extensions import get_redis
        from authcore.infra.redis.redis_session_store import RedisSessionStore

        return RedisSessionStore(r=get_redis(), ttl=ttl)
    if backend == "memory":
        return InMemorySessionStore(ttl=ttl)
    raise RuntimeError(
        f"Unknown SESSION_STORE_BACKEND {backend!r}; expected one of {SESSION_STORE_BACKENDS}."
    )


def _init_sessions(
    app: Flask,
    *,
    identity_directory: IdentityDirectory | None,
    session_store: SessionStore | None,
) -> None:
    from authcore.api.deps import SESSION_SERVICE_EXTENSION
    from authcore.infra.jwt.flask_jwt_token_provider import JWTTokenProvider

    store = session_store if session_store is not None else build_session_store(app)
    if identity_directory is None:
        log.warning("No identity directory supplied; refresh rotation will reject every user.")
        identity_directory = InMemoryIdentityDirectory()

    token_cfg = SessionTokenConfig(
        access_expires=timedelta(minutes=int(app.config["ACCESS_TOKEN_TTL_MINUTES"])),
        refresh_expires=timedelta(days=int(app.config["REFRESH_TOKEN_TTL_DAYS"])),
    )
    provider = JWTTokenProvider()

    def make_service(ctx: ServiceContext | None = None) -> SessionService:
        # Collaborators are looked up per call so they can be swapped at runtime
        return SessionService(
            token_provider=provider,
            session_store=app.extensions["session_store"],
            identity_directory=app.extensions["identity_directory"],
            token_cfg=token_cfg,
            ctx=ctx,
        )

    app.extensions["session_store"] = store
    app.extensions["identity_directory"] = identity_directory
    app.extensions[SESSION_SERVICE_EXTENSION] = make_service


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    identity_directory: IdentityDirectory | None = None,
    session_store: SessionStore | None = None,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application.

    :param config: Config class/object, or ``None`` to select by ``APP_ENV``.
    :param identity_directory: Host application's user lookup used on rotation.
    :param session_store: Overrides the store selected by ``SESSION_STORE_BACKEND``.
    :raises RuntimeError: On signing-key or session-store misconfiguration.
    """

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    from authcore.core import extensions

    extensions.init_app(app)

    init_logging(app)

    from authcore.core import cors

    cors.init_app(app)

    _init_sessions(app, identity_directory=identity_directory, session_store=session_store)

    from authcore.api import init_app as init_api

    init_api(app)

    from authcore.core import errors

    errors.init_app(app)

    from authcore import cli as app_cli

    app_cli.init_app(app)

    return app
