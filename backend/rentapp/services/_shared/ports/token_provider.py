from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol
from uuid import uuid4

from rentapp.services._shared.errors import MalformedTokenError, SignatureError

# Claims the codec always computes itself; caller-supplied values are dropped.
RESERVED_CLAIMS = frozenset({"sub", "jti", "iat", "exp", "nbf", "type", "fresh"})


@dataclass(frozen=True, slots=True)
class IssuedAccessToken:
    """
    Result of signing a new access token.

    :ivar token: Encoded, signed token.
    :ivar jti: Unique token identifier embedded in the token.
    :ivar issued_at: Server-computed issue instant (UTC).
    :ivar expires_at: Server-computed expiry instant (UTC).
    """

    token: str
    jti: str
    issued_at: datetime
    expires_at: datetime


class AccessTokenCodec(Protocol):
    """Port for signing and verifying access tokens."""

    def issue(
        self,
        *,
        subject: str,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta,
    ) -> IssuedAccessToken:
        """
        Sign a token for ``subject`` carrying ``claims`` plus a fresh ``jti``.

        ``iat`` is now and ``exp`` is ``now + ttl``; reserved claims present in
        ``claims`` are ignored.
        """

    def verify(self, token: str) -> dict[str, Any]:
        """
        Verify structure, signature, and algorithm; return the claims.

        Expiry is **not** enforced here.

        :raises MalformedTokenError: When the token cannot be parsed.
        :raises SignatureError: When the signature or algorithm is rejected.
        """


def strip_reserved(claims: Mapping[str, Any] | None) -> dict[str, Any]:
    """Return a copy of ``claims`` without codec-owned keys."""
    return {k: v for k, v in (claims or {}).items() if k not in RESERVED_CLAIMS}


class StubAccessTokenCodec(AccessTokenCodec):
    """Deterministic, thread-safe codec used in unit tests."""

    def __init__(self, *, now: datetime | None = None) -> None:
        self._now = now
        self._seq = 0
        self._issued: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def now(self) -> datetime:
        return self._now or datetime.now(UTC)

    def issue(
        self,
        *,
        subject: str,
        claims: Mapping[str, Any] | None = None,
        ttl: timedelta,
    ) -> IssuedAccessToken:
        issued_at = self.now()
        expires_at = issued_at + ttl
        jti = uuid4().hex
        with self._lock:
            self._seq += 1
            token = f"access.{subject}.{jti}.{self._seq}"
            payload = strip_reserved(claims)
            payload.update(
                {
                    "sub": subject,
                    "jti": jti,
                    "type": "access",
                    "iat": int(issued_at.timestamp()),
                    "exp": int(expires_at.timestamp()),
                }
            )
            self._issued[token] = payload
        return IssuedAccessToken(token=token, jti=jti, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: str) -> dict[str, Any]:
        if not isinstance(token, str) or token.count(".") != 3:
            raise MalformedTokenError("Token is not in stub format")
        with self._lock:
            payload = self._issued.get(token)
        if payload is None:
            raise SignatureError("Token was not issued by this codec")
        return dict(payload)
