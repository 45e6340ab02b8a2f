# auth_api/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from auth_api.services._shared.dto import UserPublicOut
from auth_api.services.tokens.dto import TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email as registered.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Output DTO for login and refresh.

    :param user: Authenticated user.
    :type user: UserPublicOut
    :param tokens: Issued token pair.
    :type tokens: TokenPairOut
    """

    user: UserPublicOut
    tokens: TokenPairOut
