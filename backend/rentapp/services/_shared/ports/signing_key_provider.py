from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True, slots=True)
class SigningKey:
    """
    Symmetric key material used to sign and verify access tokens.

    :ivar secret: Shared HMAC secret.
    :ivar algorithm: JWS algorithm name (e.g. ``"HS256"``).
    """

    secret: str
    algorithm: str

    def __repr__(self) -> str:
        return f"SigningKey(algorithm={self.algorithm!r}, secret=***)"


class SigningKeyProvider(Protocol):
    """Port supplying the current signing key."""

    def current_key(self) -> SigningKey: ...


class StaticSigningKeyProvider(SigningKeyProvider):
    """Fixed key, used in unit tests and scripts."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._key = SigningKey(secret=secret, algorithm=algorithm)

    def current_key(self) -> SigningKey:
        return self._key
