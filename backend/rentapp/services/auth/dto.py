# rentapp/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from rentapp.services.auth.random_tokens import DEFAULT_LENGTH

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param name: Display name.
    :type name: str
    :param email: Login email.
    :type email: str
    :param password: Raw password (hashed by the identity provider).
    :type password: str
    """

    name: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token rotation.

    :param token: Encoded access JWT (may be expired).
    :type token: str
    :param refresh_token: Opaque refresh token value issued with ``token``.
    :type refresh_token: str
    """

    token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Refresh token value to revoke.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with an access token and its paired refresh token.

    :param token: Encoded access JWT.
    :type token: str
    :param refresh_token: Opaque refresh token value.
    :type refresh_token: str
    :param expires_at: Access token expiry.
    :type expires_at: datetime
    :param refresh_expires_at: Refresh token expiry.
    :type refresh_expires_at: datetime
    """

    token: str
    refresh_token: str
    expires_at: datetime
    refresh_expires_at: datetime


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :param refresh_token_length: Length of generated refresh values.
    :type refresh_token_length: int
    """

    access_expires: timedelta = timedelta(minutes=30)
    refresh_expires: timedelta = timedelta(days=7)
    refresh_token_length: int = DEFAULT_LENGTH

    @classmethod
    def from_mapping(cls, config) -> AuthTokenConfig:
        """Build from a Flask config mapping, falling back to defaults."""
        defaults = cls()
        return cls(
            access_expires=config.get("JWT_ACCESS_TOKEN_EXPIRES", defaults.access_expires),
            refresh_expires=config.get("REFRESH_TOKEN_EXPIRES", defaults.refresh_expires),
            refresh_token_length=int(
                config.get("REFRESH_TOKEN_LENGTH", defaults.refresh_token_length)
            ),
        )
