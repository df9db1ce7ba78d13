from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto
from typing import Protocol

from rentapp.services._shared.errors import ConflictError, NotFoundError


class RefreshTokenState(Enum):
    """Lifecycle state of a refresh token, derived lazily from its record."""

    ACTIVE = auto()
    REDEEMED = auto()
    REVOKED = auto()
    EXPIRED = auto()


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Persisted refresh token.

    :ivar jwt_id: ``jti`` of the access token issued alongside.
    :ivar token_value: Opaque random value; unique lookup key.
    :ivar user_id: Owning identity id.
    :ivar issued_at: Issue instant (UTC).
    :ivar expires_at: Absolute expiry (UTC).
    :ivar is_used: Set once, when redeemed for rotation.
    :ivar is_revoked: Set once, on explicit revocation.
    :ivar id: Surrogate key, ``None`` until stored.
    """

    jwt_id: str
    token_value: str
    user_id: str
    issued_at: datetime
    expires_at: datetime
    is_used: bool = False
    is_revoked: bool = False
    id: int | None = None

    def state(self, now: datetime) -> RefreshTokenState:
        """Return the lifecycle state at ``now``; terminal states are absorbing."""
        if self.is_revoked:
            return RefreshTokenState.REVOKED
        if self.is_used:
            return RefreshTokenState.REDEEMED
        if self.expires_at < now:
            return RefreshTokenState.EXPIRED
        return RefreshTokenState.ACTIVE

    def redeemed(self) -> RefreshTokenRecord:
        """Return a copy marked as used."""
        return replace(self, is_used=True)

    def revoked(self) -> RefreshTokenRecord:
        """Return a copy marked as revoked."""
        return replace(self, is_revoked=True)

    def __repr__(self) -> str:
        # Never log the bearer value itself.
        return (
            f"RefreshTokenRecord(id={self.id!r}, jwt_id={self.jwt_id!r}, "
            f"user_id={self.user_id!r}, is_used={self.is_used}, is_revoked={self.is_revoked})"
        )


class RefreshTokenStore(Protocol):
    """
    Durable store for refresh tokens; the single source of truth.

    Implementations MUST make :meth:`mark_used_if_active` atomic and SHOULD
    map infrastructure failures to ``StoreUnavailableError``.
    """

    def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        """
        Persist a new record and return it with ``id`` assigned.

        :raises ConflictError: When ``token_value`` (or ``jwt_id``) already exists.
        """

    def find_by_value(self, token_value: str) -> RefreshTokenRecord | None:
        """Point lookup by token value."""

    def mark_used(self, record_id: int) -> RefreshTokenRecord:
        """
        Unconditionally set ``is_used``; a no-op when already used.

        :raises NotFoundError: When the id is unknown.
        """

    def mark_used_if_active(self, record_id: int) -> bool:
        """
        Atomically set ``is_used`` where it is still unused and unrevoked.

        :returns: ``True`` only for the single caller that flipped the flag.
        """

    def revoke(self, record_id: int) -> RefreshTokenRecord:
        """
        Set ``is_revoked``; a no-op when already revoked.

        :raises NotFoundError: When the id is unknown.
        """


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       Uses a threading lock to provide compare-and-set semantics in tests.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, RefreshTokenRecord] = {}
        self._id_by_value: dict[str, int] = {}
        self._jwt_ids: set[str] = set()
        self._seq = 0
        self._lock = threading.Lock()

    def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        with self._lock:
            if record.token_value in self._id_by_value:
                raise ConflictError("RefreshToken", "token value already exists")
            if record.jwt_id in self._jwt_ids:
                raise ConflictError("RefreshToken", "jwt id already bound")
            self._seq += 1
            stored = replace(record, id=self._seq)
            self._by_id[stored.id] = stored
            self._id_by_value[stored.token_value] = stored.id
            self._jwt_ids.add(stored.jwt_id)
            return stored

    def find_by_value(self, token_value: str) -> RefreshTokenRecord | None:
        with self._lock:
            record_id = self._id_by_value.get(token_value)
            return self._by_id.get(record_id) if record_id is not None else None

    def mark_used(self, record_id: int) -> RefreshTokenRecord:
        with self._lock:
            current = self._require(record_id)
            updated = current.redeemed()
            self._by_id[record_id] = updated
            return updated

    def mark_used_if_active(self, record_id: int) -> bool:
        with self._lock:
            current = self._by_id.get(record_id)
            if current is None or current.is_used or current.is_revoked:
                return False
            self._by_id[record_id] = current.redeemed()
            return True

    def revoke(self, record_id: int) -> RefreshTokenRecord:
        with self._lock:
            current = self._require(record_id)
            updated = current.revoked()
            self._by_id[record_id] = updated
            return updated

    def _require(self, record_id: int) -> RefreshTokenRecord:
        current = self._by_id.get(record_id)
        if current is None:
            raise NotFoundError("RefreshToken", record_id)
        return current
