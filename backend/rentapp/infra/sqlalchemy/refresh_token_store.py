# rentapp/infra/sqlalchemy/refresh_token_store.py
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from rentapp.models.refresh_token import RefreshToken
from rentapp.services._shared.errors import (
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    violates,
)
from rentapp.services._shared.ports import RefreshTokenRecord, RefreshTokenStore
from rentapp.uow.sqlalchemy_uow import SQLAlchemyUnitOfWork

log = logging.getLogger(__name__)


def _to_record(row: RefreshToken) -> RefreshTokenRecord:
    return RefreshTokenRecord(
        id=row.id,
        jwt_id=row.jwt_id,
        token_value=row.token_value,
        user_id=str(row.user_id),
        issued_at=row.issued_at,
        expires_at=row.expires_at,
        is_used=bool(row.is_used),
        is_revoked=bool(row.is_revoked),
    )


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Refresh token store over the ``refresh_tokens`` table.

    Every call runs in its own Unit of Work and commits before returning, so
    a redeemed or revoked flag is durable once the method returns.

    :param uow_factory: Builds the Unit of Work (overridable in tests).
    """

    def __init__(
        self, uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork
    ) -> None:
        self._uow_factory = uow_factory

    @contextmanager
    def _uow(self) -> Iterator[SQLAlchemyUnitOfWork]:
        try:
            with self._uow_factory() as uow:
                yield uow
        except (OperationalError, PoolTimeoutError) as exc:
            log.error(
                "refresh_store.unavailable",
                extra={"event": "refresh_store.unavailable", "backend": "sqlalchemy"},
                exc_info=True,
            )
            raise StoreUnavailableError() from exc

    # -------------------- API ------------------------

    def create(self, record: RefreshTokenRecord) -> RefreshTokenRecord:
        try:
            with self._uow() as uow:
                row = uow.refresh_tokens.add(
                    RefreshToken(
                        jwt_id=record.jwt_id,
                        token_value=record.token_value,
                        user_id=int(record.user_id),
                        issued_at=record.issued_at,
                        expires_at=record.expires_at,
                        is_used=record.is_used,
                        is_revoked=record.is_revoked,
                    )
                )
                stored = _to_record(row)
        except IntegrityError as exc:
            if violates(exc, "token_value"):
                raise ConflictError("RefreshToken", "token value already exists") from exc
            if violates(exc, "jwt_id"):
                raise ConflictError("RefreshToken", "jwt id already bound") from exc
            raise
        return stored

    def find_by_value(self, token_value: str) -> RefreshTokenRecord | None:
        with self._uow() as uow:
            row = uow.refresh_tokens.get_by_value(token_value)
            return _to_record(row) if row is not None else None

    def mark_used(self, record_id: int) -> RefreshTokenRecord:
        return self._set_flags(record_id, is_used=True)

    def mark_used_if_active(self, record_id: int) -> bool:
        with self._uow() as uow:
            return uow.refresh_tokens.set_used_where_active(record_id)

    def revoke(self, record_id: int) -> RefreshTokenRecord:
        return self._set_flags(record_id, is_revoked=True)

    # -------------------- helpers --------------------

    def _set_flags(self, record_id: int, **flags: bool) -> RefreshTokenRecord:
        with self._uow() as uow:
            repo = uow.refresh_tokens
            if repo.set_flags(record_id, **flags) == 0:
                raise NotFoundError("RefreshToken", record_id)
            row = repo.get(record_id)
            uow.session.refresh(row)
            return _to_record(row)
