# comments in English; reST docstrings
from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError, WatchError  # type: ignore[import-untyped]

from auth_api.services._shared.errors import StorageError
from auth_api.services._shared.ports import RefreshTokenStore, RefreshTokenView


def _s(value: bytes | str | None, default: str = "") -> str:
    if value is None:
        return default
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic per-device writes.

    Layout
    ------
    ``rt:{token}``
        Hash with ``user_id``, ``user_agent`` and ``expires_at`` (epoch
        seconds); the key expires with the token.
    ``rt:d:{user_id}:{sha256(user_agent)[:32]}``
        Device index holding the token value currently issued to the device.
    ``rt:u:{user_id}``
        Set of the user's token values (may hold stale members until purged).

    Device writes use WATCH/MULTI/EXEC on the device index key and retry on
    :class:`redis.WatchError`.

    :param r: A Redis client (already connected).
    :param max_retries: Optimistic-lock attempts before giving up.
    """

    r: redis.Redis
    max_retries: int = 16

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token: str) -> str:
        return f"rt:{token}"

    @staticmethod
    def _kd(user_id: str, user_agent: str) -> str:
        digest = hashlib.sha256(user_agent.encode("utf-8")).hexdigest()[:32]
        return f"rt:d:{user_id}:{digest}"

    @staticmethod
    def _ku(user_id: str) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _to_ts(dt: datetime) -> int:
        # Naive datetimes are labelled as UTC
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return int(dt.timestamp())

    def _ttl(self, expires_at: datetime) -> int:
        return max(1, self._to_ts(expires_at) - self._to_ts(datetime.now(UTC)))

    def _read(self, token: str) -> RefreshTokenView | None:
        h = self.r.hgetall(self._k(token))
        if not h:
            return None
        return RefreshTokenView(
            token=token,
            user_id=_s(h.get(b"user_id")),
            user_agent=_s(h.get(b"user_agent")),
            expires_at=datetime.fromtimestamp(int(_s(h.get(b"expires_at"), "0")), tz=UTC),
        )

    def _queue_write(
        self,
        p: redis.client.Pipeline,
        *,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> None:
        ttl = self._ttl(expires_at)
        k_new = self._k(token)
        p.hset(
            k_new,
            mapping={
                "user_id": user_id,
                "user_agent": user_agent,
                "expires_at": str(self._to_ts(expires_at)),
            },
        )
        p.expire(k_new, ttl)
        p.set(self._kd(user_id, user_agent), token, ex=ttl)
        p.sadd(self._ku(user_id), token)

    # -------------------- reads ----------------------

    def get(self, token: str) -> RefreshTokenView | None:
        try:
            return self._read(token)
        except RedisError as exc:
            raise StorageError("Refresh token lookup failed.") from exc

    def find_for_device(self, user_id: str, user_agent: str) -> RefreshTokenView | None:
        try:
            token = self.r.get(self._kd(user_id, user_agent))
            return self._read(_s(token)) if token else None
        except RedisError as exc:
            raise StorageError("Refresh token lookup failed.") from exc

    def list_user_tokens(self, user_id: str) -> Iterable[RefreshTokenView]:
        try:
            members = sorted(_s(m) for m in self.r.smembers(self._ku(user_id)))
            views = [v for v in (self._read(m) for m in members) if v is not None]
        except RedisError as exc:
            raise StorageError("Refresh token listing failed.") from exc
        return sorted(views, key=lambda v: v.user_agent)

    # -------------------- writes ---------------------

    def upsert_for_device(
        self,
        *,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView:
        """
        Point the device at ``token``, dropping the token it previously held.

        Registered *before* the access token is issued so there is no window
        where a client holds a refresh token without a server-side record.
        """
        k_dev = self._kd(user_id, user_agent)
        k_user = self._ku(user_id)
        try:
            for _ in range(self.max_retries):
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_dev)
                        previous = p.get(k_dev)

                        p.multi()
                        if previous:
                            p.delete(self._k(_s(previous)))
                            p.srem(k_user, _s(previous))
                        self._queue_write(
                            p,
                            user_id=user_id,
                            user_agent=user_agent,
                            token=token,
                            expires_at=expires_at,
                        )
                        p.execute()
                    return RefreshTokenView(
                        token=token,
                        user_id=user_id,
                        user_agent=user_agent,
                        expires_at=datetime.fromtimestamp(self._to_ts(expires_at), tz=UTC),
                    )
                except WatchError:
                    # Concurrent write on this device; retry
                    continue
        except RedisError as exc:
            raise StorageError("Refresh token could not be stored.") from exc
        raise StorageError("Refresh token could not be stored: too much contention.")

    def rotate(
        self,
        *,
        old_token: str,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView | None:
        """
        Atomically consume ``old_token`` and write ``token`` for the device.

        The old hash and the device index are both watched, so a concurrent
        rotation of the same token makes exactly one caller succeed.
        """
        k_old = self._k(old_token)
        k_dev = self._kd(user_id, user_agent)
        k_user = self._ku(user_id)
        try:
            for _ in range(self.max_retries):
                try:
                    with self.r.pipeline() as p:
                        p.watch(k_old, k_dev)
                        old_owner = p.hget(k_old, "user_id")
                        if not old_owner:
                            p.unwatch()
                            return None
                        old_owner_s = _s(old_owner)
                        old_agent = _s(p.hget(k_old, "user_agent"))
                        previous = p.get(k_dev)
                        k_old_dev = self._kd(old_owner_s, old_agent)
                        stale_old_dev = False
                        if k_old_dev != k_dev:
                            p.watch(k_old_dev)
                            stale_old_dev = _s(p.get(k_old_dev)) == old_token

                        p.multi()
                        p.delete(k_old)
                        p.srem(self._ku(old_owner_s), old_token)
                        if stale_old_dev:
                            p.delete(k_old_dev)
                        if previous and _s(previous) != old_token:
                            p.delete(self._k(_s(previous)))
                            p.srem(k_user, _s(previous))
                        self._queue_write(
                            p,
                            user_id=user_id,
                            user_agent=user_agent,
                            token=token,
                            expires_at=expires_at,
                        )
                        p.execute()
                    return RefreshTokenView(
                        token=token,
                        user_id=user_id,
                        user_agent=user_agent,
                        expires_at=datetime.fromtimestamp(self._to_ts(expires_at), tz=UTC),
                    )
                except WatchError:
                    continue
        except RedisError as exc:
            raise StorageError("Refresh token rotation failed.") from exc
        raise StorageError("Refresh token rotation failed: too much contention.")

    def delete(self, token: str) -> bool:
        key = self._k(token)
        try:
            h = self.r.hgetall(key)
            if not h:
                return False
            uid = _s(h.get(b"user_id"))
            k_dev = self._kd(uid, _s(h.get(b"user_agent")))
            with self.r.pipeline(transaction=True) as p:
                p.delete(key)
                p.srem(self._ku(uid), token)
                out = p.execute()
            # Only drop the device index if it still points at this token
            if _s(self.r.get(k_dev)) == token:
                self.r.delete(k_dev)
            return bool(out[0])
        except RedisError as exc:
            raise StorageError("Refresh token deletion failed.") from exc

    def delete_all_for_user(self, user_id: str) -> int:
        key_u = self._ku(user_id)
        try:
            tokens = [_s(m) for m in self.r.smembers(key_u)]
            if not tokens:
                return 0
            agents = [_s(self.r.hget(self._k(t), "user_agent")) for t in tokens]
            with self.r.pipeline(transaction=True) as p:
                for t in tokens:
                    p.delete(self._k(t))
                for agent in set(agents):
                    p.delete(self._kd(user_id, agent))
                p.delete(key_u)
                out = p.execute()
            return sum(int(n) for n in out[: len(tokens)])
        except RedisError as exc:
            raise StorageError("Refresh token deletion failed.") from exc

    def purge_expired(self, now: datetime) -> int:
        """
        Drop records expired at ``now`` and stale members of the user indexes.

        Token hashes expire on their own; this sweeps what their TTL cannot
        reach (index set members) and anything expiring within the same second.
        """
        now_ts = self._to_ts(now)
        removed = 0
        try:
            for key_u in self.r.scan_iter(match="rt:u:*"):
                key_u_s = _s(key_u)
                user_id = key_u_s.removeprefix("rt:u:")
                for member in list(self.r.smembers(key_u_s)):
                    token = _s(member)
                    h = self.r.hgetall(self._k(token))
                    if h and int(_s(h.get(b"expires_at"), "0")) > now_ts:
                        continue
                    with self.r.pipeline(transaction=True) as p:
                        p.delete(self._k(token))
                        p.srem(key_u_s, token)
                        p.execute()
                    if h:
                        k_dev = self._kd(user_id, _s(h.get(b"user_agent")))
                        if _s(self.r.get(k_dev)) == token:
                            self.r.delete(k_dev)
                    removed += 1
        except RedisError as exc:
            raise StorageError("Expired refresh token purge failed.") from exc
        return removed

    def new_token(self) -> str:
        return str(uuid4())
