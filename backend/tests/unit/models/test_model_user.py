"""Tests for the User model."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from rentapp.models.user import User


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="Test@Example.com", name="Tester")
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@example.com", name="u1")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        u = User(email="a@example.com", name="u1")
        with pytest.raises(ValueError):
            u.password = ""

    def test_verify_without_hash_is_false(self):
        assert User(email="a@example.com", name="u1").verify_password("x") is False

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="Alice@Example.com", name="Alice")
        u1.password = "pw"
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = User(email="alice@example.com", name="Alice Two")
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()

    def test_timestamps_are_set(self, session):
        u = User(email="ts@example.com", name="Stamp")
        u.password = "pw"
        session.add(u)
        session.flush()
        session.refresh(u)
        assert u.created_at is not None
        assert u.created_at.tzinfo is not None

    def test_basic_validations(self):
        with pytest.raises(ValueError):
            User(email="", name="u")
        with pytest.raises(ValueError):
            User(email="not-an-email", name="u")
        with pytest.raises(ValueError):
            User(email="x@example.com", name="   ")
