"""Unit tests for UserRepository."""

import pytest

from rentapp.repositories.user import UserRepository
from tests.factories.user import UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs core persistence operations."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository()

    def test_create_and_get_by_email(self, repo, session):
        """Create a user and fetch it by email to verify retrieval."""
        created = repo.create(name="Alice", email="Alice@Example.com", password="pw123456")
        session.commit()

        fetched = repo.get_by_email(" ALICE@example.com")
        assert fetched is not None
        assert fetched.id == created.id
        assert fetched.verify_password("pw123456")

    def test_exists_by_email(self, repo):
        """Return existence flags for known and unknown email addresses."""
        UserFactory(email="bob@example.com")

        assert repo.exists_by_email("bob@example.com")
        assert not repo.exists_by_email("nonexistent@example.com")

    def test_find_one_and_exists_use_whitelisted_fields(self, repo):
        user = UserFactory(name="Carol")

        assert repo.find_one(email=user.email).id == user.id
        assert repo.exists(name="Carol")
        with pytest.raises(ValueError):
            repo.find_one(password_hash="x")

    def test_get_unknown_returns_none(self, repo):
        assert repo.get(987654) is None
