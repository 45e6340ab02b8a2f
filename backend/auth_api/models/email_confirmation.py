"""Pending email confirmations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from auth_api.core.extensions import db

from .base import ReprMixin, utcnow


class EmailConfirmation(ReprMixin, db.Model):
    """One-shot confirmation token for an email address."""

    __tablename__ = "email_confirmations"
    __repr_attr__ = "token"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(254), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now()
    )
