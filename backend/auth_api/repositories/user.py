"""User repository: lookups, filtered listing and existence checks."""

from __future__ import annotations

from collections.abc import Iterable
from typing import cast

from sqlalchemy import or_, select

from auth_api.models.user import Role, User, UserRole
from auth_api.repositories.base import BaseRepository, Page


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Never hashes or verifies passwords and never issues tokens.
    """

    model = User

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by exact email (trimmed).

        :param email: Email address as stored.
        :returns: User instance or ``None`` when not found.
        """
        stmt = select(User).where(User.email == email.strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_id_or_email(self, key: str) -> User | None:
        """Fetch a user whose id or email equals ``key``."""
        value = key.strip()
        stmt = select(User).where(or_(User.id == value, User.email == value))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_email(self, email: str) -> bool:
        """Return ``True`` when a user with the provided email exists."""
        stmt = select(User.id).where(User.email == email.strip())
        return self.session.execute(stmt.limit(1)).first() is not None

    def paginate_filtered(
        self,
        *,
        page: int,
        limit: int,
        roles: Iterable[Role] | None = None,
        newest_first: bool = True,
    ) -> Page[User]:
        """List users ordered by creation time, optionally filtered by role.

        :param page: 1-based page number.
        :param limit: Page size.
        :param roles: Keep users holding *any* of these roles.
        :param newest_first: Sort ``created_at`` descending when ``True``.
        :returns: :class:`Page` of users with the unpaginated total.
        """
        stmt = select(User)
        wanted = list(roles or [])
        if wanted:
            stmt = stmt.where(User.role_links.any(UserRole.role.in_(wanted)))
        order = User.created_at.desc() if newest_first else User.created_at.asc()
        stmt = stmt.order_by(order, User.id.asc())
        return self._paginate(stmt, page=page, limit=limit)
