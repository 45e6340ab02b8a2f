"""Server-side refresh token records (one per user and device)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from auth_api.core.extensions import db

from .base import ReprMixin

#: Longest device string kept; longer ``User-Agent`` values are truncated.
MAX_USER_AGENT_LENGTH = 512


class RefreshToken(ReprMixin, db.Model):
    """
    Refresh session keyed by its opaque token value.

    Fields
    ------
    token : str
        Opaque random value handed to the client; primary key.
    user_id : str
        Owning user.
    user_agent : str
        Device string scoping the session; may be empty.
    expires_at : datetime
        Absolute expiry (UTC).

    Notes
    -----
    ``(user_id, user_agent)`` is unique: a device holds at most one live
    refresh token.
    """

    __tablename__ = "refresh_tokens"
    __repr_attr__ = "token"

    token: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_agent: Mapped[str] = mapped_column(
        String(MAX_USER_AGENT_LENGTH), nullable=False, default=""
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "user_agent", name="uq_refresh_tokens_user_id_user_agent"),
    )
