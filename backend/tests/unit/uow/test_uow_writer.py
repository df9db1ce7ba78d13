"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from rentapp.models import RefreshToken, User
from rentapp.uow import SQLAlchemyUnitOfWork
from tests.factories.user import UserFactory


class TestSQLAlchemyUnitOfWorkWriter:
    def test_exposes_repositories_on_one_session(self, session):
        with SQLAlchemyUnitOfWork() as uow:
            assert uow.users.session is uow.session
            assert uow.refresh_tokens.session is uow.session

    def test_writer_uow_commits_on_success(self, db, session):
        """
        GIVEN a writer UoW
        WHEN we create a user via repo inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        initial = db.session.query(User).count()

        with SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())

        assert db.session.query(User).count() == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        initial = db.session.query(User).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.users.add(UserFactory.build())
            raise RuntimeError("boom")

        assert db.session.query(User).count() == initial

    def test_refresh_token_rows_follow_the_same_transaction(self, db, session):
        initial = db.session.query(RefreshToken).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            user = uow.users.create(name="Dora", email="dora@example.com", password="pw123456")
            uow.refresh_tokens.add(
                RefreshToken(
                    jwt_id="jti-uow",
                    token_value="value-uow",
                    user_id=user.id,
                    issued_at=datetime.now(UTC),
                    expires_at=datetime.now(UTC),
                )
            )
            raise RuntimeError("boom")

        assert db.session.query(RefreshToken).count() == initial
