"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    IdentitySchema,
    LoginSchema,
    LogoutSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
)

__all__ = [
    "IdentitySchema",
    "LoginSchema",
    "LogoutSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "TokenPairSchema",
]
