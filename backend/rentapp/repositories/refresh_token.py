"""Refresh token repository: lookups and single-statement flag updates."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select, update

from rentapp.models.refresh_token import RefreshToken
from rentapp.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`."""

    model = RefreshToken

    def _filterable_fields(self):
        return {
            "jwt_id": RefreshToken.jwt_id,
            "token_value": RefreshToken.token_value,
            "user_id": RefreshToken.user_id,
        }

    def get_by_value(self, token_value: str) -> RefreshToken | None:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.token_value == token_value)
            .execution_options(populate_existing=True)
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def set_used_where_active(self, token_id: int) -> bool:
        """Flip ``is_used`` only where the row is still unused and unrevoked.

        The condition and the write are one ``UPDATE`` statement, so two
        concurrent callers cannot both see ``rowcount == 1``.

        :returns: ``True`` when this statement changed the row.
        """
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.is_used.is_(False),
                RefreshToken.is_revoked.is_(False),
            )
            .values(is_used=True)
        )
        result = self.session.execute(stmt)
        return result.rowcount == 1  # type: ignore[attr-defined]

    def set_flags(self, token_id: int, *, is_used: bool = False, is_revoked: bool = False) -> int:
        """Set monotonic flags unconditionally; returns the matched row count."""
        values: dict[str, bool] = {}
        if is_used:
            values["is_used"] = True
        if is_revoked:
            values["is_revoked"] = True
        if not values:
            raise ValueError("set_flags requires is_used or is_revoked")
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id)
            .values(**values)
        )
        return int(self.session.execute(stmt).rowcount)  # type: ignore[attr-defined]
