"""
rentapp.services._shared.ports
==============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
token issuance and rotation.

These ports decouple the service layer from concrete implementations of
token signing, key lookup, identity storage, and refresh persistence.

Modules
-------
- :mod:`token_provider`:
    Defines :class:`~.AccessTokenCodec` for signing and verification of access tokens.

- :mod:`signing_key_provider`:
    Defines :class:`~.SigningKeyProvider`, which supplies the symmetric key and algorithm.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenRecord`:
    persistence of single-use refresh tokens.

- :mod:`identity_provider`:
    Defines :class:`~.IdentityProvider` and :class:`~.Identity` for the
    external identity collaborator.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, flask-jwt-extended) live under
``rentapp.infra``. The in-memory and stub implementations kept here back
the unit tests.
"""

from __future__ import annotations

from .identity_provider import Identity, IdentityProvider, InMemoryIdentityProvider
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenState,
    RefreshTokenStore,
)
from .signing_key_provider import SigningKey, SigningKeyProvider, StaticSigningKeyProvider
from .token_provider import AccessTokenCodec, IssuedAccessToken, StubAccessTokenCodec

__all__ = [
    "AccessTokenCodec",
    "IssuedAccessToken",
    "StubAccessTokenCodec",
    "SigningKey",
    "SigningKeyProvider",
    "StaticSigningKeyProvider",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "RefreshTokenState",
    "InMemoryRefreshTokenStore",
    "Identity",
    "IdentityProvider",
    "InMemoryIdentityProvider",
]
