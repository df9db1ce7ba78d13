"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
migrate = Migrate(render_as_batch=True)
jwt = JWTManager()
redis_client: redis.Redis | None = None

REFRESH_BACKENDS = ("sqlalchemy", "redis", "memory")


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, migrations, JWT, and the refresh token store.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. This call imports the
        :mod:`rentapp.models` package to ensure SQLAlchemy metadata is ready
        for migrations.
    """
    db.init_app(app)

    # Ensure models are imported so Alembic sees metadata
    from rentapp import models as _models  # noqa: F401

    migrate.init_app(app, db)
    _init_jwt(app)
    _init_redis(app)
    app.extensions["refresh_token_store"] = build_refresh_token_store(app)


def _init_jwt(app: Flask) -> None:
    """Bind flask-jwt-extended and route its key lookups to the key provider."""
    from rentapp.infra.jwt.signing_keys import ConfigSigningKeyProvider

    jwt.init_app(app)
    app.extensions["signing_key_provider"] = ConfigSigningKeyProvider(app.config)

    @jwt.encode_key_loader
    def _encode_key(identity):  # pragma: no cover - exercised through the codec
        return get_signing_key_provider().current_key().secret

    @jwt.decode_key_loader
    def _decode_key(jwt_header, jwt_payload):  # pragma: no cover - exercised through the codec
        return get_signing_key_provider().current_key().secret


def _init_redis(app: Flask) -> None:
    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url or app.config.get("REFRESH_TOKEN_BACKEND") != "redis":
        redis_client = None
        app.extensions.pop("redis_client", None)
        return

    timeout = float(app.config.get("STORE_TIMEOUT_SECONDS", 2.0))
    redis_client = redis.Redis.from_url(
        redis_url, socket_timeout=timeout, socket_connect_timeout=timeout
    )
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client


def build_refresh_token_store(app: Flask):
    """Build the refresh token store selected by ``REFRESH_TOKEN_BACKEND``.

    :raises RuntimeError: On an unknown backend or a missing Redis client.
    """
    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sqlalchemy")).lower()
    if backend not in REFRESH_BACKENDS:
        raise RuntimeError(f"Unknown REFRESH_TOKEN_BACKEND {backend!r}.")

    if backend == "redis":
        from rentapp.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore

        client = app.extensions.get("redis_client")
        if client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL.")
        return RedisRefreshTokenStore(client)

    if backend == "memory":
        from rentapp.services._shared.ports import InMemoryRefreshTokenStore

        return InMemoryRefreshTokenStore()

    from rentapp.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore

    return SQLAlchemyRefreshTokenStore()


def get_signing_key_provider():
    """Return the signing key provider bound to the current app."""
    return current_app.extensions["signing_key_provider"]


def get_refresh_token_store():
    """Return the refresh token store bound to the current app."""
    return current_app.extensions["refresh_token_store"]
