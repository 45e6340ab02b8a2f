from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from auth_api.services._shared.dto import UserPublicOut
from auth_api.services._shared.ports import UserCache

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisUserCache(UserCache):
    """
    Read-through user cache stored as JSON strings.

    ``user:{id}`` holds the payload; ``user:e:{email}`` holds the id. Both
    expire after ``ttl``. Backend failures degrade to cache misses.

    :param r: A Redis client (already connected).
    :param ttl: Entry lifetime (the access token TTL).
    """

    r: redis.Redis
    ttl: timedelta = timedelta(minutes=5)

    @staticmethod
    def _k(user_id: str) -> str:
        return f"user:{user_id}"

    @staticmethod
    def _ke(email: str) -> str:
        return f"user:e:{email}"

    def get(self, key: str) -> UserPublicOut | None:
        try:
            raw = self.r.get(self._k(key))
            if raw is None:
                user_id = self.r.get(self._ke(key))
                raw = self.r.get(self._k(user_id.decode())) if user_id else None
        except RedisError:
            log.warning("User cache read failed", exc_info=True)
            return None
        if raw is None:
            return None
        return UserPublicOut.from_dict(json.loads(raw))

    def set(self, user: UserPublicOut) -> None:
        seconds = max(1, int(self.ttl.total_seconds()))
        try:
            with self.r.pipeline(transaction=True) as p:
                p.set(self._k(user.id), json.dumps(user.to_dict()), ex=seconds)
                p.set(self._ke(user.email), user.id, ex=seconds)
                p.execute()
        except RedisError:
            log.warning("User cache write failed", exc_info=True)

    def invalidate(self, user_id: str, email: str | None = None) -> None:
        try:
            keys = [self._k(user_id)]
            if email:
                keys.append(self._ke(email))
            self.r.delete(*keys)
        except RedisError:
            log.warning("User cache invalidation failed", exc_info=True)
