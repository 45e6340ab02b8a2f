"""
DTOs for IdentityService.

Data Transfer Objects (DTOs) isolate the service layer from ORM models,
ensuring clear input/output contracts and type safety.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Input DTOs
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for user registration.

    :param email: Login email (kept as provided, only trimmed).
    :type email: str
    :param full_name: Display name.
    :type full_name: str
    :param password: Raw password, hashed before persisting.
    :type password: str
    """

    email: str
    full_name: str
    password: str
