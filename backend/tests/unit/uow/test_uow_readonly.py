import pytest

from rentapp.models.user import User
from rentapp.uow import SQLAlchemyReadOnlyUnitOfWork as ROuow
from rentapp.uow import SQLAlchemyUnitOfWork as RWuow
from tests.factories.user import UserFactory


class TestSQLAlchemyReadOnlyUnitOfWork:
    def test_blocks_orm_flush_writes(self, session):
        """
        Ensure that attempting to flush ORM changes inside the RO UoW raises.
        """
        with ROuow() as uow, pytest.raises(RuntimeError, match="ORM flush blocked"):
            uow.session.add(UserFactory.build())
            uow.session.flush()

    def test_allows_reads(self, session):
        with RWuow() as uow:
            uow.users.add(UserFactory.build())

        with ROuow() as uow:
            assert uow.session.query(User).count() >= 1

    def test_disallows_commit(self, session):
        with ROuow() as uow, pytest.raises(RuntimeError, match="does not allow commit"):
            uow.commit()

    def test_guard_is_removed_on_exit(self, session):
        with ROuow():
            pass

        with RWuow() as uow:
            uow.users.add(UserFactory.build())

    def test_reads_rows_persisted_by_factories(self, session):
        """Factory-built rows must not leave pending changes for the RO guard."""
        user = UserFactory(password="s3cret-pass")

        assert not session.dirty
        with ROuow() as uow:
            stored = uow.users.get_by_email(user.email)

        assert stored is not None
        assert stored.verify_password("s3cret-pass")
