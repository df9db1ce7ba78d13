"""
Unit tests for SQLAlchemyRefreshTokenStore against the transactional SQLite
session.
"""

from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from rentapp.core.config import TestingConfig
from rentapp.core.extensions import db
from rentapp.factory import create_app
from rentapp.infra.sqlalchemy.refresh_token_store import SQLAlchemyRefreshTokenStore
from rentapp.services._shared.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    StoreUnavailableError,
)
from rentapp.services._shared.ports import (
    Identity,
    InMemoryIdentityProvider,
    RefreshTokenRecord,
    StubAccessTokenCodec,
)
from rentapp.services.auth.lifecycle import TokenLifecycleManager
from rentapp.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory
from tests.helpers.auth import TEST_JWT_SECRET


@pytest.fixture
def store(session) -> SQLAlchemyRefreshTokenStore:
    return SQLAlchemyRefreshTokenStore()


@pytest.fixture
def user_id(session) -> str:
    return str(UserFactory().id)


def _record(user_id: str, value: str = "value-1", jwt_id: str = "jti-1") -> RefreshTokenRecord:
    now = datetime.now(UTC)
    return RefreshTokenRecord(
        jwt_id=jwt_id,
        token_value=value,
        user_id=user_id,
        issued_at=now,
        expires_at=now + timedelta(days=7),
    )


def test_create_and_find_by_value(store, user_id):
    record = _record(user_id)

    stored = store.create(record)
    found = store.find_by_value("value-1")

    assert stored.id is not None
    assert found == stored
    assert found.user_id == user_id
    assert found.expires_at.tzinfo is not None
    assert abs(found.expires_at - record.expires_at) < timedelta(seconds=1)
    assert store.find_by_value("missing") is None


def test_duplicate_value_conflicts(store, user_id):
    store.create(_record(user_id))
    with pytest.raises(ConflictError):
        store.create(_record(user_id, jwt_id="jti-2"))


def test_duplicate_jwt_id_conflicts(store, user_id):
    store.create(_record(user_id))
    with pytest.raises(ConflictError):
        store.create(_record(user_id, value="value-2"))


def test_mark_used_if_active_is_compare_and_set(store, user_id):
    stored = store.create(_record(user_id))

    assert store.mark_used_if_active(stored.id) is True
    assert store.mark_used_if_active(stored.id) is False
    assert store.find_by_value("value-1").is_used is True


def test_mark_used_if_active_refuses_revoked(store, user_id):
    stored = store.create(_record(user_id))
    store.revoke(stored.id)

    assert store.mark_used_if_active(stored.id) is False
    assert store.find_by_value("value-1").is_used is False


def test_revoke_and_mark_used_return_updated_records(store, user_id):
    stored = store.create(_record(user_id))

    assert store.revoke(stored.id).is_revoked is True
    assert store.revoke(stored.id).is_revoked is True
    used = store.mark_used(stored.id)
    assert used.is_used is True and used.is_revoked is True


def test_unknown_id_raises_not_found(store):
    with pytest.raises(NotFoundError):
        store.revoke(424242)
    with pytest.raises(NotFoundError):
        store.mark_used(424242)


class _BrokenRepo:
    def get_by_value(self, token_value):
        raise OperationalError("SELECT 1", {}, Exception("database is down"))


class _BrokenUoW:
    refresh_tokens = _BrokenRepo()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return None


def test_database_failure_maps_to_store_unavailable(caplog):
    store = SQLAlchemyRefreshTokenStore(uow_factory=_BrokenUoW)

    with caplog.at_level(logging.ERROR), pytest.raises(StoreUnavailableError):
        store.find_by_value("value-1")

    events = [getattr(r, "event", None) for r in caplog.records]
    assert "refresh_store.unavailable" in events


# --------------------------------------------------------------------------- #
# Concurrent rotation against a real database file
# --------------------------------------------------------------------------- #


class FileDatabaseConfig(TestingConfig):
    JWT_SECRET_KEY = TEST_JWT_SECRET
    LOG_LEVEL = "WARNING"


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file so each thread gets its own connection."""
    config = type(
        "RaceConfig",
        (FileDatabaseConfig,),
        {"SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'race.db'}"},
    )
    app = create_app(config)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.drop_all()
        db.engine.dispose()


def test_concurrent_rotation_has_exactly_one_winner(file_app):
    with file_app.app_context():
        with SQLAlchemyUnitOfWork() as uow:
            user = uow.users.create(name="Racer", email="racer@example.com", password="pw123456")
            alice = Identity(id=str(user.id), email=user.email, name=user.name)

    identities = InMemoryIdentityProvider()
    identities.add(alice)
    manager = TokenLifecycleManager(
        codec=StubAccessTokenCodec(), store=SQLAlchemyRefreshTokenStore(), identities=identities
    )
    with file_app.app_context():
        pair = manager.issue(alice)

    contenders = 4
    barrier = threading.Barrier(contenders)
    outcomes: list[object] = []
    lock = threading.Lock()

    def attempt():
        with file_app.app_context():
            barrier.wait()
            try:
                result: object = manager.rotate(pair.token, pair.refresh_token)
            except InvalidTokenError as exc:
                result = exc
        with lock:
            outcomes.append(result)

    threads = [threading.Thread(target=attempt) for _ in range(contenders)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    winners = [o for o in outcomes if not isinstance(o, Exception)]
    losers = [o for o in outcomes if isinstance(o, InvalidTokenError)]
    assert len(winners) == 1
    assert len(losers) == contenders - 1
    with file_app.app_context():
        assert SQLAlchemyRefreshTokenStore().find_by_value(pair.refresh_token).is_used is True
