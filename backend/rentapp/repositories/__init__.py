"""Repository package exposing persistence-layer access for the models."""

from __future__ import annotations

from rentapp.repositories.base import BaseRepository
from rentapp.repositories.refresh_token import RefreshTokenRepository
from rentapp.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
