from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from typing import Any, TypeVar

import redis  # type: ignore[import-untyped]
from redis.exceptions import ConnectionError as RedisConnectionError  # type: ignore[import-untyped]
from redis.exceptions import TimeoutError as RedisTimeoutError  # type: ignore[import-untyped]

from rentapp.services._shared.errors import (
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
)
from rentapp.services._shared.ports import RefreshTokenRecord, RefreshTokenStore

log = logging.getLogger(__name__)

T = TypeVar("T")


def _s(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with optimistic (WATCH/MULTI/EXEC) updates.

    Layout
    ------
    - ``rt:{id}``: hash with the record fields.
    - ``rt:v:{token_value}``: id lookup by bearer value.
    - ``rt:j:{jwt_id}``: id lookup by access token ``jti``.
    - ``rt:seq``: id sequence.

    Keys carry no TTL; expiry is evaluated by the caller.

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "rt") -> None:
        self.r = r
        self.prefix = prefix

    # -------------------- helpers --------------------

    def _k(self, record_id: int | str) -> str:
        return f"{self.prefix}:{record_id}"

    def _kv(self, token_value: str) -> str:
        return f"{self.prefix}:v:{token_value}"

    def _kj(self, jwt_id: str) -> str:
        return f"{self.prefix}:j:{jwt_id}"

    def _kseq(self) -> str:
        return f"{self.prefix}:seq"

    @contextmanager
    def _guard(self) -> Iterator[None]:
        try:
            yield
        except (RedisConnectionError, RedisTimeoutError) as exc:
            log.error(
                "refresh_store.unavailable",
                extra={"event": "refresh_store.unavailable", "backend": "redis"},
                exc_info=True,
            )
            raise StoreUnavailableError() from exc

    def _optimistic(self, keys: list[str], body: Callable[[redis.client.Pipeline], T]) -> T:
        """Run ``body`` under WATCH on ``keys``, retrying on concurrent writes."""
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(*keys)
                    return body(p)
            except redis.WatchError:
                # Concurrent modification detected; retry loop
                continue

    @staticmethod
    def _from_hash(record_id: int, h: dict[Any, Any]) -> RefreshTokenRecord:
        def field(name: str, default: str = "") -> str:
            return _s(h.get(name.encode(), h.get(name)), default)

        return RefreshTokenRecord(
            id=record_id,
            jwt_id=field("jwt_id"),
            token_value=field("token_value"),
            user_id=field("user_id"),
            issued_at=datetime.fromisoformat(field("issued_at")),
            expires_at=datetime.fromisoformat(field("expires_at")),
            is_used=field("used", "0") == "1",
            is_revoked=field("revoked", "0") == "1",
        )

    def _load(self, record_id: int) -> RefreshTokenRecord | None:
        h = self.r.hgetall(self._k(record_id))
        return self._from_hash(record_id, h) if h else None

    # -------------------- API ------------------------

    def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        """
        Insert the record and both lookup keys in one transaction.

        :raises ConflictError: If the value or ``jwt_id`` is already indexed.
        """
        k_value = self._kv(record.token_value)
        k_jti = self._kj(record.jwt_id)

        with self._guard():
            record_id = int(self.r.incr(self._kseq()))

            def _insert(p: redis.client.Pipeline) -> None:
                if p.exists(k_value):
                    p.unwatch()
                    raise ConflictError("RefreshToken", "token value already exists")
                if p.exists(k_jti):
                    p.unwatch()
                    raise ConflictError("RefreshToken", "jwt id already bound")
                p.multi()
                p.hset(
                    self._k(record_id),
                    mapping={
                        "jwt_id": record.jwt_id,
                        "token_value": record.token_value,
                        "user_id": record.user_id,
                        "issued_at": record.issued_at.isoformat(),
                        "expires_at": record.expires_at.isoformat(),
                        "used": "1" if record.is_used else "0",
                        "revoked": "1" if record.is_revoked else "0",
                    },
                )
                p.set(k_value, record_id)
                p.set(k_jti, record_id)
                p.execute()

            self._optimistic([k_value, k_jti], _insert)

        return replace(record, id=record_id)

    def find_by_value(self, token_value: str) -> RefreshTokenRecord | None:
        with self._guard():
            raw_id = self.r.get(self._kv(token_value))
            if raw_id is None:
                return None
            return self._load(int(_s(raw_id)))

    def mark_used(self, record_id: int) -> RefreshTokenRecord:
        return self._set_flag(record_id, "used")

    def mark_used_if_active(self, record_id: int) -> bool:
        """
        Flip ``used`` only if the hash is still unused and unrevoked.

        WATCH makes EXEC fail when another client touched the hash between the
        read and the write; the retry then observes ``used=1`` and loses.
        """
        key = self._k(record_id)

        def _cas(p: redis.client.Pipeline) -> bool:
            used, revoked = (_s(v) for v in p.hmget(key, "used", "revoked"))
            if not used or used == "1" or revoked == "1":
                p.unwatch()
                return False
            p.multi()
            p.hset(key, "used", "1")
            p.execute()
            return True

        with self._guard():
            return self._optimistic([key], _cas)

    def revoke(self, record_id: int) -> RefreshTokenRecord:
        return self._set_flag(record_id, "revoked")

    def _set_flag(self, record_id: int, flag: str) -> RefreshTokenRecord:
        key = self._k(record_id)
        with self._guard():
            if not self.r.exists(key):
                raise NotFoundError("RefreshToken", record_id)
            self.r.hset(key, flag, "1")
            record = self._load(record_id)
        if record is None:
            raise NotFoundError("RefreshToken", record_id)
        return record
