# auth_api/infra/sqlalchemy/sql_refresh_token_store.py
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import uuid4

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth_api.models.base import as_utc
from auth_api.models.refresh_token import RefreshToken
from auth_api.services._shared.errors import StorageError
from auth_api.services._shared.ports import RefreshTokenStore, RefreshTokenView
from auth_api.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

#: One retry covers the race where a concurrent writer claimed the device row.
_WRITE_ATTEMPTS = 2


def _view(row: RefreshToken) -> RefreshTokenView:
    return RefreshTokenView(
        token=row.token,
        user_id=row.user_id,
        user_agent=row.user_agent,
        expires_at=as_utc(row.expires_at),
    )


@dataclass(slots=True)
class SQLRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh token store (``refresh_tokens`` table).

    Each write runs in its own Unit of Work, so callers must not invoke the
    store from inside another read-write unit of work: the commit would also
    flush the caller's pending changes.

    The ``(user_id, user_agent)`` unique constraint backs the per-device
    invariant; an ``IntegrityError`` raised by a concurrent writer is retried
    once as an overwrite.
    """

    # -------------------- reads ------------------------

    def get(self, token: str) -> RefreshTokenView | None:
        try:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                row = uow.refresh_tokens.get(token)
                return _view(row) if row else None
        except SQLAlchemyError as exc:
            raise StorageError("Refresh token lookup failed.") from exc

    def find_for_device(self, user_id: str, user_agent: str) -> RefreshTokenView | None:
        try:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                row = uow.refresh_tokens.get_by_user_and_device(user_id, user_agent)
                return _view(row) if row else None
        except SQLAlchemyError as exc:
            raise StorageError("Refresh token lookup failed.") from exc

    def list_user_tokens(self, user_id: str) -> Iterable[RefreshTokenView]:
        try:
            with SQLAlchemyReadOnlyUnitOfWork() as uow:
                return [_view(row) for row in uow.refresh_tokens.list_for_user(user_id)]
        except SQLAlchemyError as exc:
            raise StorageError("Refresh token listing failed.") from exc

    # -------------------- writes -----------------------

    def upsert_for_device(
        self,
        *,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView:
        for attempt in range(1, _WRITE_ATTEMPTS + 1):
            try:
                with SQLAlchemyUnitOfWork() as uow:
                    repo = uow.refresh_tokens
                    current = repo.get_by_user_and_device(user_id, user_agent)
                    if current is None:
                        repo.add(
                            RefreshToken(
                                token=token,
                                user_id=user_id,
                                user_agent=user_agent,
                                expires_at=expires_at,
                            )
                        )
                    elif not repo.replace(
                        current.token,
                        token=token,
                        user_agent=user_agent,
                        expires_at=expires_at,
                    ):
                        # Row vanished between lookup and update; insert on retry
                        raise _Retry()
            except (IntegrityError, _Retry) as exc:
                if attempt == _WRITE_ATTEMPTS:
                    raise StorageError("Refresh token could not be stored.") from exc
                continue
            except SQLAlchemyError as exc:
                raise StorageError("Refresh token could not be stored.") from exc
            return RefreshTokenView(
                token=token, user_id=user_id, user_agent=user_agent, expires_at=as_utc(expires_at)
            )
        raise StorageError("Refresh token could not be stored.")  # pragma: no cover

    def rotate(
        self,
        *,
        old_token: str,
        user_id: str,
        user_agent: str,
        token: str,
        expires_at: datetime,
    ) -> RefreshTokenView | None:
        for attempt in range(1, _WRITE_ATTEMPTS + 1):
            try:
                with SQLAlchemyUnitOfWork() as uow:
                    repo = uow.refresh_tokens
                    if repo.get(old_token) is None:
                        return None
                    other = repo.get_by_user_and_device(user_id, user_agent)
                    if other is not None and other.token != old_token:
                        repo.delete_by_token(other.token)
                    if not repo.replace(
                        old_token, token=token, user_agent=user_agent, expires_at=expires_at
                    ):
                        # Consumed by a concurrent refresh
                        uow.rollback()
                        return None
            except IntegrityError as exc:
                if attempt == _WRITE_ATTEMPTS:
                    raise StorageError("Refresh token rotation failed.") from exc
                continue
            except SQLAlchemyError as exc:
                raise StorageError("Refresh token rotation failed.") from exc
            return RefreshTokenView(
                token=token, user_id=user_id, user_agent=user_agent, expires_at=as_utc(expires_at)
            )
        raise StorageError("Refresh token rotation failed.")  # pragma: no cover

    def delete(self, token: str) -> bool:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.refresh_tokens.delete_by_token(token)
        except SQLAlchemyError as exc:
            raise StorageError("Refresh token deletion failed.") from exc

    def delete_all_for_user(self, user_id: str) -> int:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.refresh_tokens.delete_for_user(user_id)
        except SQLAlchemyError as exc:
            raise StorageError("Refresh token deletion failed.") from exc

    def purge_expired(self, now: datetime) -> int:
        try:
            with SQLAlchemyUnitOfWork() as uow:
                return uow.refresh_tokens.delete_expired(now)
        except SQLAlchemyError as exc:
            raise StorageError("Expired refresh token purge failed.") from exc

    def new_token(self) -> str:
        return str(uuid4())


class _Retry(Exception):
    """Internal signal: the device row changed under us."""
