"""Factory Boy base wired to the per-test SAVEPOINT session.

``conftest`` binds the session before a database-backed test runs and
unbinds it afterwards; persisting a factory outside that window is a test
bug, so it fails loudly instead of falling back to ``db.session``.
"""

from __future__ import annotations

import factory
from sqlalchemy.orm import Session

_bound: Session | None = None


def bind_session(session: Session | None) -> None:
    """Set (or clear, with ``None``) the session factories persist into."""
    global _bound
    _bound = session


def bound_session() -> Session:
    if _bound is None:
        raise RuntimeError("No test session bound; request the 'session' fixture.")
    return _bound


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Flush-only persistence so rows roll back with the test SAVEPOINT."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = bound_session
        sqlalchemy_session_persistence = "flush"
