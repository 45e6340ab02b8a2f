"""Refresh token repository (SQL backend of the refresh token store)."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, cast

from sqlalchemy import delete, select, update
from sqlalchemy.orm import InstrumentedAttribute

from auth_api.models.refresh_token import RefreshToken
from auth_api.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only access to ``refresh_tokens``.

    Writes that must be race-safe (:meth:`replace`, :meth:`delete_by_token`)
    are single UPDATE/DELETE statements and report the affected row count.
    """

    model = RefreshToken

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        return cast(InstrumentedAttribute[Any], RefreshToken.token)

    def get_by_user_and_device(self, user_id: str, user_agent: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(
            RefreshToken.user_id == user_id, RefreshToken.user_agent == user_agent
        )
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def list_for_user(self, user_id: str) -> Sequence[RefreshToken]:
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.user_agent.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def replace(
        self,
        old_token: str,
        *,
        token: str,
        user_agent: str,
        expires_at: datetime,
    ) -> bool:
        """Overwrite the row keyed by ``old_token`` in a single statement.

        :returns: ``True`` if the row existed and was rewritten.
        """
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.token == old_token)
            .values(token=token, user_agent=user_agent, expires_at=expires_at)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def delete_by_token(self, token: str) -> bool:
        """Delete a row by value. :returns: ``True`` if a row was removed."""
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.token == token)
            .execution_options(synchronize_session=False)
        )
        return self.session.execute(stmt).rowcount == 1

    def delete_for_user(self, user_id: str) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)

    def delete_expired(self, now: datetime) -> int:
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.expires_at <= now)
            .execution_options(synchronize_session=False)
        )
        return int(self.session.execute(stmt).rowcount or 0)
