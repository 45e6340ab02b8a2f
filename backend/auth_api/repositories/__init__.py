"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from auth_api.repositories.base import BaseRepository, Page
from auth_api.repositories.email_confirmation import EmailConfirmationRepository
from auth_api.repositories.refresh_token import RefreshTokenRepository
from auth_api.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "Page",
    "EmailConfirmationRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
