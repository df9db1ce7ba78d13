"""Refresh token model: one row per issued access/refresh pair."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column

from rentapp.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, UTCDateTime


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Persisted refresh token.

    Rows are never deleted by the token lifecycle; ``is_used`` and
    ``is_revoked`` only ever go from false to true.

    Fields
    ------
    jwt_id : str
        ``jti`` of the access token issued in the same pair.
    token_value : str
        Opaque bearer value presented by clients (unique lookup key).
    user_id : int
        Owning user.
    issued_at : datetime
        Issue instant.
    expires_at : datetime
        Absolute expiry.
    is_used : bool
        Redeemed for rotation.
    is_revoked : bool
        Explicitly revoked (logout or operator action).
    """

    __tablename__ = "refresh_tokens"

    jwt_id: Mapped[str] = mapped_column(String(64), nullable=False)
    token_value: Mapped[str] = mapped_column(String(128), nullable=False)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    issued_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    is_used: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    is_revoked: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    __table_args__ = (
        UniqueConstraint("jwt_id", name="uq_refresh_tokens_jwt_id"),
        UniqueConstraint("token_value", name="uq_refresh_tokens_token_value"),
        Index("ix_refresh_tokens_user_id", "user_id"),
    )
