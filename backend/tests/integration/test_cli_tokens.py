"""Integration tests for the ``flask tokens`` command group."""

from __future__ import annotations

import pytest

from rentapp.cli.tokens import mask_value
from tests.factories.user import DEFAULT_PASSWORD, UserFactory


@pytest.fixture
def refresh_value(client, session) -> str:
    user = UserFactory()
    resp = client.post("/api/auth/login", json={"email": user.email, "password": DEFAULT_PASSWORD})
    return resp.get_json()["refresh_token"]


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


def test_mask_value():
    assert mask_value("abcdefgh") == "abcd****"
    assert mask_value("abc") == "***"


def test_inspect_shows_state_without_full_value(runner, refresh_value):
    result = runner.invoke(args=["tokens", "inspect", refresh_value])

    assert result.exit_code == 0, result.output
    assert "state:      active" in result.output
    assert refresh_value not in result.output


def test_revoke_then_inspect(runner, refresh_value):
    revoked = runner.invoke(args=["tokens", "revoke", refresh_value])
    inspected = runner.invoke(args=["tokens", "inspect", refresh_value])

    assert revoked.exit_code == 0, revoked.output
    assert "Revoked" in revoked.output
    assert "state:      revoked" in inspected.output


def test_unknown_value_fails(runner, session):
    for command in ("inspect", "revoke"):
        result = runner.invoke(args=["tokens", command, "missing-value"])
        assert result.exit_code != 0
        assert "No refresh token matches" in result.output
