"""
DTOs for UserService (administrative user management).
"""

from __future__ import annotations

from dataclasses import dataclass

from auth_api.models.user import Role
from auth_api.services._shared.dto import UserPublicOut

# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserListIn:
    """
    Input DTO for listing users.

    :param page: 1-based page number.
    :type page: int
    :param page_size: Page size (1..20).
    :type page_size: int
    :param roles: Keep users holding any of these roles; ``None`` keeps all.
    :type roles: tuple[Role, ...] | None
    :param created_at: Sort direction on creation time, ``"asc"`` or ``"desc"``.
    :type created_at: str
    """

    page: int = 1
    page_size: int = 10
    roles: tuple[Role, ...] | None = None
    created_at: str = "desc"


@dataclass(frozen=True, slots=True)
class UserCreateIn:
    """
    Input DTO for administrative user creation.

    :param email: Login email.
    :type email: str
    :param full_name: Display name.
    :type full_name: str
    :param password: Raw password, hashed before persisting.
    :type password: str
    :param verified: Initial verification flag.
    :type verified: bool
    :param banned: Initial ban flag.
    :type banned: bool
    """

    email: str
    full_name: str
    password: str
    verified: bool = True
    banned: bool = False


@dataclass(frozen=True, slots=True)
class UserEditIn:
    """
    Partial update of administrative fields. ``None`` leaves a field as is.

    :param roles: Replacement role set (must not be empty when given).
    :type roles: tuple[Role, ...] | None
    :param verified: New verification flag.
    :type verified: bool | None
    :param banned: New ban flag.
    :type banned: bool | None
    """

    roles: tuple[Role, ...] | None = None
    verified: bool | None = None
    banned: bool | None = None


# --------------------------------------------------------------------------- #
# Output DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class UserListOut:
    """
    Output DTO for a page of users.

    :param users: Users on this page.
    :type users: tuple[UserPublicOut, ...]
    :param count: Total users matching the filters.
    :type count: int
    :param page: Current page.
    :type page: int
    :param page_size: Page size.
    :type page_size: int
    :param page_count: Number of pages.
    :type page_count: int
    """

    users: tuple[UserPublicOut, ...]
    count: int
    page: int
    page_size: int
    page_count: int
