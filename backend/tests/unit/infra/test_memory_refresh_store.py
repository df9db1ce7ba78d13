"""Tests for the in-memory refresh token store and record state machine."""

from __future__ import annotations

import threading
from datetime import UTC, datetime, timedelta

import pytest

from rentapp.services._shared.errors import ConflictError, NotFoundError
from rentapp.services._shared.ports import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenState,
)

NOW = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)


def _record(value: str = "value-1", jwt_id: str = "jti-1", **overrides) -> RefreshTokenRecord:
    fields = {
        "jwt_id": jwt_id,
        "token_value": value,
        "user_id": "u1",
        "issued_at": NOW,
        "expires_at": NOW + timedelta(days=7),
    }
    fields.update(overrides)
    return RefreshTokenRecord(**fields)


@pytest.fixture
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


class TestRefreshTokenRecord:
    def test_state_transitions(self):
        rec = _record()
        assert rec.state(NOW) is RefreshTokenState.ACTIVE
        assert rec.state(NOW + timedelta(days=8)) is RefreshTokenState.EXPIRED
        assert rec.redeemed().state(NOW) is RefreshTokenState.REDEEMED
        assert rec.revoked().state(NOW) is RefreshTokenState.REVOKED

    def test_revoked_wins_over_used(self):
        rec = _record().redeemed().revoked()
        assert rec.state(NOW) is RefreshTokenState.REVOKED

    def test_repr_hides_token_value(self):
        assert "value-1" not in repr(_record())


class TestInMemoryRefreshTokenStore:
    def test_create_assigns_id_and_find_returns_it(self, store):
        stored = store.create(_record())
        assert stored.id == 1
        assert store.find_by_value("value-1") == stored
        assert store.find_by_value("missing") is None

    def test_duplicate_value_conflicts(self, store):
        store.create(_record())
        with pytest.raises(ConflictError):
            store.create(_record(jwt_id="jti-2"))

    def test_duplicate_jwt_id_conflicts(self, store):
        store.create(_record())
        with pytest.raises(ConflictError):
            store.create(_record(value="value-2"))

    def test_mark_used_if_active_only_once(self, store):
        stored = store.create(_record())
        assert store.mark_used_if_active(stored.id) is True
        assert store.mark_used_if_active(stored.id) is False
        assert store.find_by_value("value-1").is_used is True

    def test_mark_used_if_active_refuses_revoked(self, store):
        stored = store.create(_record())
        store.revoke(stored.id)
        assert store.mark_used_if_active(stored.id) is False

    def test_mark_used_if_active_unknown_id(self, store):
        assert store.mark_used_if_active(42) is False

    def test_revoke_and_mark_used_are_idempotent(self, store):
        stored = store.create(_record())
        assert store.revoke(stored.id).is_revoked
        assert store.revoke(stored.id).is_revoked
        assert store.mark_used(stored.id).is_used
        assert store.mark_used(stored.id).is_used

    def test_unknown_id_raises_not_found(self, store):
        with pytest.raises(NotFoundError):
            store.revoke(99)
        with pytest.raises(NotFoundError):
            store.mark_used(99)

    def test_concurrent_compare_and_set_has_one_winner(self, store):
        stored = store.create(_record())
        barrier = threading.Barrier(8)
        results: list[bool] = []

        def redeem():
            barrier.wait()
            results.append(store.mark_used_if_active(stored.id))

        threads = [threading.Thread(target=redeem) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results.count(True) == 1
        assert results.count(False) == 7
