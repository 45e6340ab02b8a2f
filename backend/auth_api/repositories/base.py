"""Shared base for the SQLAlchemy 2.x repositories.

Repositories are persistence-only: they stage and query rows on the session
handed to them and never commit or roll back. Units of work own the
transaction.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from auth_api.core.extensions import db

E = TypeVar("E")


@dataclass(slots=True)
class Page(Generic[E]):
    """One page of a listing.

    :param items: Rows on this page.
    :type items: Sequence[E]
    :param total: Rows matching the query across all pages.
    :type total: int
    :param page: 1-based page number actually served.
    :type page: int
    :param limit: Page size actually served.
    :type limit: int
    """

    items: Sequence[E]
    total: int
    page: int
    limit: int


class BaseRepository(Generic[E]):
    """Repository for a single mapped model.

    Subclasses set ``model`` and override :meth:`_pk_attr` when the primary
    key is not ``id``.
    """

    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Injected session, else the Flask-scoped one."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def _pk_attr(self) -> InstrumentedAttribute[Any]:
        return cast(InstrumentedAttribute[Any], getattr(self.model, "id"))

    def _paginate(self, stmt: Select[Any], *, page: int, limit: int) -> Page[E]:
        """Run an ordered ``stmt`` for one page and count the full result.

        The count runs on ``stmt`` stripped of its ``ORDER BY``.

        :param stmt: Filtered and ordered select.
        :param page: 1-based page number, clamped to ``>= 1``.
        :param limit: Page size, clamped to ``>= 1``.
        """
        page = max(int(page), 1)
        limit = max(int(limit), 1)
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = int(self.session.execute(count_stmt).scalar_one())
        rows = self.session.execute(stmt.limit(limit).offset((page - 1) * limit)).scalars()
        return Page(items=list(rows), total=total, page=page, limit=limit)

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so constraint errors surface here."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        stmt = select(self.model).where(self._pk_attr() == entity_id)
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()
