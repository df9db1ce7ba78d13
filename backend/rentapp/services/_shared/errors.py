"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between stores,
token codecs, and application services.

The translation to HTTP responses is handled by the API layer
(``rentapp/api/auth.py`` for the auth envelope, ``rentapp/core/errors.py``
for everything else).
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from stores, codecs, or domain logic.
    """

    pass


# --------------------------------------------------------------------------- #
# Persistence errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in a store or repository.

    :param entity: Entity name (e.g., "RefreshToken").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:  # pragma: no cover
        return f"Conflict on {self.entity}: {self.detail}"


class StoreUnavailableError(ServiceError):
    """
    Raised when a backing store fails or times out.

    Transient: the caller should retry the client-visible request rather than
    assume any refresh token was consumed.
    """

    def __init__(self, message: str = "Token store unavailable") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Token errors
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base class for every token validation failure."""


class MalformedTokenError(TokenError):
    """The presented access token is not a structurally valid JWT."""


class SignatureError(TokenError):
    """Signature or algorithm verification failed for the access token."""


class InvalidTokenError(TokenError):
    """
    The token pair cannot be redeemed.

    Unknown, used, revoked, and mismatched refresh tokens all raise this class.
    """


class ExpiredTokenError(TokenError):
    """The refresh token is past its own ``expires_at``."""


# --------------------------------------------------------------------------- #
# Credential errors
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """Unknown email or wrong password; the two are not distinguished."""

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)
