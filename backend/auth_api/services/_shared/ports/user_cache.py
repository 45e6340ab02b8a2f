from __future__ import annotations

from typing import Protocol

from auth_api.services._shared.dto import UserPublicOut


class UserCache(Protocol):
    """
    Read-through cache of public user views, keyed by id and by email.

    The cache is an optimization only; callers fall back to the database on
    a miss and adapters swallow nothing but their own backend errors.
    """

    def get(self, key: str) -> UserPublicOut | None: ...

    def set(self, user: UserPublicOut) -> None: ...

    def invalidate(self, user_id: str, email: str | None = None) -> None: ...


class NullUserCache(UserCache):
    """Cache that never stores anything (the default)."""

    def get(self, key: str) -> UserPublicOut | None:
        return None

    def set(self, user: UserPublicOut) -> None:
        return None

    def invalidate(self, user_id: str, email: str | None = None) -> None:
        return None


class InMemoryUserCache(UserCache):
    """Dictionary-backed cache used in unit tests."""

    def __init__(self) -> None:
        self._items: dict[str, UserPublicOut] = {}

    def get(self, key: str) -> UserPublicOut | None:
        return self._items.get(key)

    def set(self, user: UserPublicOut) -> None:
        self._items[user.id] = user
        self._items[user.email] = user

    def invalidate(self, user_id: str, email: str | None = None) -> None:
        cached = self._items.pop(user_id, None)
        for key in {email, cached.email if cached else None}:
            if key:
                self._items.pop(key, None)
