"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from rentapp.core.extensions import db
from rentapp.repositories import RefreshTokenRepository, UserRepository
from rentapp.uow.base import UnitOfWork


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    The same session is shared across all repositories for a consistent transaction.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # No-op: the session is lazily started on the first statement.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except Exception:
                self.rollback()
                raise
        else:
            self.rollback()

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    While the scope is open any ORM flush carrying new, dirty, or deleted
    objects raises ``RuntimeError``. The scope never commits and leaves the
    surrounding transaction untouched on exit; the request teardown ends it.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)
        self._guard = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        def _before_flush(session, flush_context, instances):
            if session.new or session.dirty or session.deleted:
                raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")

        # Listen on the concrete Session behind the scoped proxy.
        target = self.session() if callable(self.session) else self.session
        event.listen(target, "before_flush", _before_flush)
        self._guard = (target, _before_flush)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._guard is not None:
            target, listener = self._guard
            event.remove(target, "before_flush", listener)
            self._guard = None

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always, to prevent accidental writes.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
