"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable, Iterator, Mapping
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request
from flask_jwt_extended import verify_jwt_in_request

from rentapp.core.extensions import get_refresh_token_store, get_signing_key_provider
from rentapp.infra.jwt.flask_jwt_token_provider import FlaskJWTAccessTokenCodec
from rentapp.services.auth.dto import AuthTokenConfig
from rentapp.services.auth.lifecycle import TokenLifecycleManager
from rentapp.services.auth.service import AuthService
from rentapp.services.identity.service import IdentityService

F = TypeVar("F", bound=Callable[..., Any])


def build_auth_service() -> AuthService:
    """Wire a per-request :class:`AuthService` from the current app."""

    identities = IdentityService()
    lifecycle = TokenLifecycleManager(
        codec=FlaskJWTAccessTokenCodec(get_signing_key_provider()),
        store=get_refresh_token_store(),
        identities=identities,
        cfg=AuthTokenConfig.from_mapping(current_app.config),
    )
    return AuthService(identities=identities, lifecycle=lifecycle)


def flatten_messages(messages: Any) -> list[str]:
    """Flatten Marshmallow's nested ``messages`` into ``"field: text"`` strings."""

    def _walk(node: Any, path: str) -> Iterator[str]:
        if isinstance(node, Mapping):
            for key, value in node.items():
                yield from _walk(value, f"{path}.{key}" if path else str(key))
        elif isinstance(node, list | tuple):
            for item in node:
                yield from _walk(item, path)
        else:
            yield f"{path}: {node}" if path else str(node)

    return list(_walk(messages, ""))


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def require_auth(func: F) -> F:
    """Ensure the request carries a valid JWT access token."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        verify_jwt_in_request(optional=False)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
