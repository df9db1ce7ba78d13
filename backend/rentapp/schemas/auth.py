"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from typing import Any

from marshmallow import EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates

_non_blank = validate.Length(min=1)


class _InputSchema(Schema):
    """Request body schema; unknown keys are dropped."""

    class Meta:
        unknown = EXCLUDE


class RegisterSchema(_InputSchema):
    """Input payload for account registration."""

    name = fields.String(required=True, validate=validate.Length(min=1, max=100))
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=8, max=128))

    @validates("name")
    def validate_name(self, value: str, **_: Any) -> None:
        if not value.strip():
            raise ValidationError("Name must not be blank.")

    @post_load
    def normalize(self, data: dict[str, Any], **_: Any) -> dict[str, Any]:
        data["name"] = data["name"].strip()
        data["email"] = data["email"].strip().lower()
        return data


class LoginSchema(_InputSchema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=_non_blank)


class RefreshTokenSchema(_InputSchema):
    """Input payload for rotating a token pair (access token may be expired)."""

    token = fields.String(required=True, validate=_non_blank)
    refresh_token = fields.String(required=True, validate=_non_blank)


class LogoutSchema(_InputSchema):
    """Input payload for revoking a refresh token."""

    refresh_token = fields.String(required=True, validate=_non_blank)


class TokenPairSchema(Schema):
    """Success envelope carrying a token pair."""

    result = fields.Boolean(dump_default=True)
    token = fields.String(required=True)
    refresh_token = fields.String(required=True)


class IdentitySchema(Schema):
    """Response payload exposing the authenticated identity."""

    id = fields.String(required=True)
    email = fields.Email(required=True)
    name = fields.String(allow_none=True)
