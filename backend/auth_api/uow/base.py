"""Unit of Work contract shared by the SQLAlchemy implementations."""

from __future__ import annotations

from abc import ABC, abstractmethod


class UnitOfWork(ABC):
    """
    Transactional boundary of one use case.

    Implementations expose the ``users``, ``refresh_tokens`` and
    ``email_confirmations`` repositories, all bound to the same transaction.
    """

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
