"""Authentication endpoints.

Every route except ``/me`` answers with the ``{result, errors}`` envelope:
``{"result": true, ...}`` on success and ``{"result": false, "errors": [...]}``
otherwise. Exception detail stays in the logs.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from typing import Any

from flask import Blueprint, request
from flask_jwt_extended import get_jwt_identity
from marshmallow import Schema, ValidationError

from rentapp.api.deps import (
    build_auth_service,
    flatten_messages,
    json_response,
    require_auth,
    timing,
)
from rentapp.schemas import (
    IdentitySchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
)
from rentapp.services._shared.base import BaseService
from rentapp.services._shared.errors import (
    ConflictError,
    ExpiredTokenError,
    InvalidCredentialsError,
    InvalidTokenError,
    ServiceError,
    StoreUnavailableError,
)
from rentapp.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn

log = logging.getLogger(__name__)

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
logout_schema = LogoutSchema()
token_pair_schema = TokenPairSchema()
identity_schema = IdentitySchema()

INVALID_PAYLOAD = "Invalid payload"
SERVER_ERROR = "Server Error"


class EnvelopeError(Exception):
    """Client-facing failure rendered as ``{result: false, errors}``."""

    def __init__(self, errors: list[str], status: int = HTTPStatus.BAD_REQUEST) -> None:
        super().__init__(*errors)
        self.errors = errors
        self.status = int(status)


def _failure(errors: list[str], status: int):
    return json_response({"result": False, "errors": errors}, status=status)


def envelope(func: Callable[..., Any]) -> Callable[..., Any]:
    """Render service errors in the auth envelope; never leak internals."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        try:
            return func(*args, **kwargs)
        except EnvelopeError as err:
            return _failure(err.errors, err.status)
        except InvalidTokenError:
            return _failure(["Invalid tokens"], HTTPStatus.BAD_REQUEST)
        except ExpiredTokenError:
            return _failure(["Expired tokens"], HTTPStatus.BAD_REQUEST)
        except InvalidCredentialsError:
            return _failure(["Invalid credentials"], HTTPStatus.BAD_REQUEST)
        except StoreUnavailableError:
            log.error("auth.store_unavailable", extra={"endpoint": request.endpoint})
            return _failure([SERVER_ERROR], HTTPStatus.SERVICE_UNAVAILABLE)
        except Exception:
            log.exception("auth.unexpected_error", extra={"endpoint": request.endpoint})
            return _failure([SERVER_ERROR], HTTPStatus.INTERNAL_SERVER_ERROR)

    return wrapper


def _load(schema: Schema, *, detailed: bool = False) -> dict[str, Any]:
    """Validate the JSON body; non-object bodies count as invalid payloads."""

    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise EnvelopeError([INVALID_PAYLOAD])
    try:
        return schema.load(payload)
    except ValidationError as err:
        raise EnvelopeError(
            flatten_messages(err.messages) if detailed else [INVALID_PAYLOAD]
        ) from err


def _pair_response(pair) -> Any:
    return json_response(
        token_pair_schema.dump({"token": pair.token, "refresh_token": pair.refresh_token})
    )


@bp.post("/register")
@timing
@envelope
def register():
    """Create an account and return its first token pair."""

    data = _load(register_schema, detailed=True)
    try:
        pair = build_auth_service().register(RegisterIn(**data))
    except ConflictError as exc:
        if exc.entity != "User":
            raise
        raise EnvelopeError(["Email already exists!"]) from None
    return _pair_response(pair)


@bp.post("/login")
@timing
@envelope
def login():
    """Authenticate credentials and issue a token pair."""

    data = _load(login_schema)
    pair = build_auth_service().login(LoginIn(email=data["email"], password=data["password"]))
    return _pair_response(pair)


@bp.post("/refresh-token")
@timing
@envelope
def refresh_token():
    """Redeem an access/refresh pair for a new one (access token may be expired)."""

    data = _load(refresh_schema)
    pair = build_auth_service().refresh(
        RefreshIn(token=data["token"], refresh_token=data["refresh_token"])
    )
    return _pair_response(pair)


@bp.post("/logout")
@timing
@envelope
def logout():
    """Revoke a refresh token; unknown values still succeed."""

    data = _load(logout_schema)
    build_auth_service().logout(LogoutIn(refresh_token=data["refresh_token"]))
    return json_response({"result": True})


@bp.get("/me")
@require_auth
@timing
def me():
    """Return the identity behind the bearer token."""

    try:
        identity = build_auth_service().current_identity(get_jwt_identity())
    except ServiceError as exc:
        raise BaseService.translate_exceptions(exc) from exc
    return json_response(identity_schema.dump(identity))
