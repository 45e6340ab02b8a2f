from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import uuid4


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for a refresh token record.

    :ivar token: Opaque token value handed to the client.
    :ivar user_id: Owner user id.
    :ivar user_agent: Device string the token is scoped to (may be empty).
    :ivar expires_at: Absolute expiration (UTC).
    """

    token: str
    user_id: str
    user_agent: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens.

    Invariant: at most one record per ``(user_id, user_agent)``. Writes that
    touch a device (:meth:`upsert_for_device`, :meth:`rotate`) MUST be atomic
    with respect to that invariant.

    Adapters raise :class:`~auth_api.services._shared.errors.StorageError`
    when the backing store fails.
    """

    def get(self, token: str) -> RefreshTokenView | None:
        """Fetch a record by value, expired or not."""
        ...

    def find_for_device(self, user_id: str, user_agent: str) -> RefreshTokenView | None:
        """Fetch the record held by a device, if any."""
        ...

    def upsert_for_device(
        self,
        *,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView:
        """
        Store ``token`` for the device, overwriting any existing record.

        This MUST be executed *before* the access token is handed out.
        """
        ...

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
        Atomically replace ``old_token`` with ``token``.

        Any other record held by the device is removed in the same step.

        :returns: The new record, or ``None`` when ``old_token`` no longer
            exists (consumed or deleted concurrently).
        """
        ...

    def delete(self, token: str) -> bool:
        """Delete a record by value. :returns: True if it existed."""
        ...

    def delete_all_for_user(self, user_id: str) -> int:
        """
        Delete every record owned by ``user_id``.

        :returns: Number of records removed.
        """
        ...

    def list_user_tokens(self, user_id: str) -> Iterable[RefreshTokenView]:
        """List the records owned by ``user_id``."""
        ...

    def purge_expired(self, now: datetime) -> int:
        """Remove records expired at ``now``. :returns: Number removed."""
        ...

    def new_token(self) -> str:
        """Generate a new random refresh token value."""
        return str(uuid4())


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store.

    .. note::
       Uses a threading lock to simulate atomicity in unit tests.
    """

    def __init__(self) -> None:
        self._by_token: dict[str, RefreshTokenView] = {}
        self._by_device: dict[tuple[str, str], str] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def _drop(self, token: str) -> RefreshTokenView | None:
        view = self._by_token.pop(token, None)
        if view is not None and self._by_device.get((view.user_id, view.user_agent)) == token:
            del self._by_device[(view.user_id, view.user_agent)]
        return view

    def _put(self, view: RefreshTokenView) -> RefreshTokenView:
        self._by_token[view.token] = view
        self._by_device[(view.user_id, view.user_agent)] = view.token
        return view

    # -------------------------- API ----------------------------

    def new_token(self) -> str:
        return str(uuid4())

    def get(self, token: str) -> RefreshTokenView | None:
        return self._by_token.get(token)

    def find_for_device(self, user_id: str, user_agent: str) -> RefreshTokenView | None:
        with self._lock:
            token = self._by_device.get((user_id, user_agent))
            return self._by_token.get(token) if token else None

    def upsert_for_device(
        self,
        *,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView:
        with self._lock:
            current = self._by_device.get((user_id, user_agent))
            if current is not None:
                self._drop(current)
            return self._put(
                RefreshTokenView(
                    token=token,
                    user_id=user_id,
                    user_agent=user_agent,
                    expires_at=expires_at.astimezone(UTC),
                )
            )

    def rotate(
        self,
        *,
        old_token: str,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView | None:
        with self._lock:
            old = self._drop(old_token)
            if old is None:
                return None
            other = self._by_device.get((user_id, user_agent))
            if other is not None:
                self._drop(other)
            return self._put(
                replace(
                    old,
                    token=token,
                    user_id=user_id,
                    user_agent=user_agent,
                    expires_at=expires_at.astimezone(UTC),
                )
            )

    def delete(self, token: str) -> bool:
        with self._lock:
            return self._drop(token) is not None

    def delete_all_for_user(self, user_id: str) -> int:
        with self._lock:
            owned = [t for t, v in self._by_token.items() if v.user_id == user_id]
            for t in owned:
                self._drop(t)
            return len(owned)

    def list_user_tokens(self, user_id: str) -> Iterable[RefreshTokenView]:
        with self._lock:
            owned = [v for v in self._by_token.values() if v.user_id == user_id]
        return sorted(owned, key=lambda v: v.user_agent)

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            stale = [t for t, v in self._by_token.items() if v.is_expired(now)]
            for t in stale:
                self._drop(t)
            return len(stale)
