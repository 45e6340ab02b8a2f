"""
SQLAlchemy units of work over the Flask-SQLAlchemy scoped session.

Two flavours share one repository container:

- :class:`SQLAlchemyUnitOfWork` commits when the block exits cleanly.
- :class:`SQLAlchemyReadOnlyUnitOfWork` never commits and blocks writes.
"""

from __future__ import annotations

from contextlib import suppress
from typing import Any

from flask import current_app
from sqlalchemy import event, text
from sqlalchemy.exc import InvalidRequestError, SQLAlchemyError
from sqlalchemy.orm import Session, SessionTransaction

from auth_api.core.extensions import db
from auth_api.repositories import (
    EmailConfirmationRepository,
    RefreshTokenRepository,
    UserRepository,
)
from auth_api.uow.base import UnitOfWork

#: Leading SQL keywords treated as writes by the read-only guard.
WRITE_KEYWORDS = (
    "insert",
    "update",
    "delete",
    "merge",
    "replace",
    "create",
    "alter",
    "drop",
    "truncate",
    "grant",
    "revoke",
)

#: Dialects understanding ``SET TRANSACTION`` directives.
SET_TRANSACTION_DIALECTS = frozenset({"postgresql", "mysql", "mariadb"})


class SQLAlchemyRepositoryContainer:
    """Repositories bound to one session, hence one transaction."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=session)
        self.refresh_tokens = RefreshTokenRepository(session=session)
        self.email_confirmations = EmailConfirmationRepository(session=session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-write unit of work.

    The transaction starts lazily with the first statement. A clean exit
    commits (rolling back if the commit itself fails); an exception inside
    the block rolls back and propagates.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """
    Event listeners rejecting ORM flushes and DML on a session.

    :param session: Session whose flushes are checked.
    :param target: Connection (or engine) whose cursor executions are checked.
    """

    def __init__(self, session: Session, target: Any) -> None:
        self.session = session
        self.target = target
        self.active = False

    @staticmethod
    def _on_flush(session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError(
                "Read-only UnitOfWork: ORM flush blocked (pending inserts, updates or deletes)."
            )

    @staticmethod
    def _on_execute(conn, cursor, statement, parameters, context, executemany) -> None:
        keyword = statement.lstrip().split(None, 1)[0].lower() if statement else ""
        if keyword.startswith(WRITE_KEYWORDS):
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {keyword.upper()}")

    def install(self) -> None:
        if self.active:
            return
        event.listen(self.session, "before_flush", self._on_flush)
        event.listen(self.target, "before_cursor_execute", self._on_execute)
        self.active = True

    def remove(self) -> None:
        if not self.active:
            return
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self._on_flush)
        with suppress(InvalidRequestError):
            event.remove(self.target, "before_cursor_execute", self._on_execute)
        self.active = False


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only unit of work.

    On entry it tries to open its own transaction; when the session is
    already inside one it joins it instead. Owning the transaction allows
    ``SET TRANSACTION`` hints on PostgreSQL and MySQL/MariaDB and a rollback
    on exit. A :class:`_WriteGuard` blocks writes on every dialect, SQLite
    included, for the lifetime of the block.

    Parameters
    ----------
    isolation_level:
        Isolation level hint, e.g. ``"READ COMMITTED"``; ``None`` skips it.
    enforce_db_readonly:
        Also issue ``SET TRANSACTION READ ONLY`` where supported.
    """

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly
        self._own_txn: SessionTransaction | None = None
        self._guard: _WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        self._own_txn = None
        try:
            txn = self.session.begin()
            txn.__enter__()
            self._own_txn = txn
        except InvalidRequestError:
            # A transaction is already running; join it
            pass

        conn = self.session.connection()
        self._guard = _WriteGuard(self.session, conn)
        self._guard.install()

        if self._own_txn is not None and conn.dialect.name in SET_TRANSACTION_DIALECTS:
            self._apply_transaction_hints()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if self._own_txn is not None:
                with suppress(SQLAlchemyError):
                    self.session.rollback()
                try:
                    self._own_txn.__exit__(exc_type, exc, tb)
                finally:
                    self._own_txn = None
        finally:
            if self._guard is not None:
                self._guard.remove()
                self._guard = None

    def _apply_transaction_hints(self) -> None:
        try:
            if self.isolation_level:
                level = self.isolation_level.upper().strip()
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {level}"))
            if self.enforce_db_readonly:
                self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            current_app.logger.warning("SET TRANSACTION failed (%s); relying on guards only.", exc)

    def commit(self) -> None:
        """
        Reject commits.

        :raises RuntimeError: Always.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
