# tests/unit/services/test_auth_service.py
from __future__ import annotations

import logging

import pytest

from rentapp.services._shared.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    NotFoundError,
)
from rentapp.services._shared.ports import (
    Identity,
    InMemoryIdentityProvider,
    InMemoryRefreshTokenStore,
    StubAccessTokenCodec,
)
from rentapp.services.auth.dto import LoginIn, LogoutIn, RefreshIn, RegisterIn, TokenPairOut
from rentapp.services.auth.lifecycle import TokenLifecycleManager
from rentapp.services.auth.service import AuthService


# ------------------------------ Fixtures ---------------------------------- #
@pytest.fixture()
def identities() -> InMemoryIdentityProvider:
    provider = InMemoryIdentityProvider()
    provider.add(Identity(id="u1", email="a@b.com", name="Alice"), password="s3cret-pass")
    return provider


@pytest.fixture()
def store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def service(identities, store) -> AuthService:
    """Build an AuthService wired to in-memory doubles."""
    lifecycle = TokenLifecycleManager(
        codec=StubAccessTokenCodec(), store=store, identities=identities
    )
    return AuthService(identities=identities, lifecycle=lifecycle)


# -------------------------------- Tests ----------------------------------- #
def test_login_issues_token_pair_and_stores_refresh(service, store):
    pair = service.login(LoginIn(email="a@b.com", password="s3cret-pass"))

    assert isinstance(pair, TokenPairOut)
    assert pair.token.startswith("access.u1.")
    record = store.find_by_value(pair.refresh_token)
    assert record is not None
    assert record.user_id == "u1"
    assert record.is_used is False


def test_login_unknown_email_and_wrong_password_look_the_same(service, caplog):
    with caplog.at_level(logging.WARNING):
        with pytest.raises(InvalidCredentialsError) as unknown:
            service.login(LoginIn(email="nobody@b.com", password="s3cret-pass"))
        with pytest.raises(InvalidCredentialsError) as wrong:
            service.login(LoginIn(email="a@b.com", password="nope"))

    assert str(unknown.value) == str(wrong.value) == "Invalid credentials"
    reasons = [r.reason for r in caplog.records if r.message == "auth.login.rejected"]
    assert reasons == ["unknown_email", "wrong_password"]


def test_register_signs_in_new_identity(service, identities):
    pair = service.register(RegisterIn(name="Bob", email="bob@b.com", password="longpassword"))

    assert pair.refresh_token
    assert identities.find_identity_by_email("bob@b.com") is not None


def test_register_duplicate_email_conflicts(service):
    with pytest.raises(ConflictError):
        service.register(RegisterIn(name="Al", email="a@b.com", password="longpassword"))


def test_refresh_rotates_and_blocks_reuse(service):
    pair = service.login(LoginIn(email="a@b.com", password="s3cret-pass"))

    rotated = service.refresh(RefreshIn(token=pair.token, refresh_token=pair.refresh_token))

    assert rotated.refresh_token != pair.refresh_token
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(token=pair.token, refresh_token=pair.refresh_token))


def test_logout_revokes_refresh_token(service, store):
    pair = service.login(LoginIn(email="a@b.com", password="s3cret-pass"))

    service.logout(LogoutIn(refresh_token=pair.refresh_token))

    assert store.find_by_value(pair.refresh_token).is_revoked is True
    with pytest.raises(InvalidTokenError):
        service.refresh(RefreshIn(token=pair.token, refresh_token=pair.refresh_token))


def test_logout_unknown_token_is_silent(service):
    service.logout(LogoutIn(refresh_token="unknown"))


def test_current_identity(service):
    assert service.current_identity("u1").email == "a@b.com"
    with pytest.raises(NotFoundError):
        service.current_identity("missing")
