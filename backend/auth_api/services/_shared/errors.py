"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or HTTP.
They are the stable contract between repositories, ports and application
services. The translation to HTTP responses (RFC 7807) is handled by
``auth_api/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, columns: str | None = None) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').
    columns : str, optional
        ``table.column`` spelling reported by SQLite, which names columns
        instead of constraints (``UNIQUE constraint failed: users.email``).

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return bool(columns) and columns.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - They can be safely raised from repositories, ports or domain logic.
    - ``BaseService.translate_exceptions`` maps them to ``APIError``.
    """


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the repository.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class AuthenticationError(ServiceError):
    """Raised when credentials or a refresh token cannot be accepted."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class AuthorizationError(ServiceError):
    """Raised when an authenticated actor may not perform the operation."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message)


class BadRequestError(ServiceError):
    """Raised when the input is well-formed but cannot be applied."""

    def __init__(self, message: str = "Bad request") -> None:
        super().__init__(message)


class InternalServiceError(ServiceError):
    """Raised when an operation fails for reasons the caller cannot fix."""

    def __init__(self, message: str = "Internal error") -> None:
        super().__init__(message)


class StorageError(InternalServiceError):
    """Raised by store adapters when the backing store fails."""


class NotificationError(InternalServiceError):
    """Raised by notifier adapters when a message cannot be delivered."""
