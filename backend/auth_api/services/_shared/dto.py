# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from auth_api.models.user import User


@dataclass(frozen=True, slots=True)
class UserPublicOut:
    """
    Public view of a user (never carries the password hash).

    :param id: User identifier.
    :type id: str
    :param email: Email as stored.
    :type email: str
    :param full_name: Display name.
    :type full_name: str
    :param roles: Granted role names, least privileged first.
    :type roles: tuple[str, ...]
    :param verified: Whether the email has been confirmed.
    :type verified: bool
    :param banned: Administrative lock flag.
    :type banned: bool
    :param created_at: Creation timestamp (UTC).
    :type created_at: datetime | None
    """

    id: str
    email: str
    full_name: str
    roles: tuple[str, ...]
    verified: bool
    banned: bool
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, user: User) -> UserPublicOut:
        from auth_api.models.base import as_utc

        return cls(
            id=user.id,
            email=user.email,
            full_name=user.full_name,
            roles=tuple(role.value for role in sorted(user.roles, key=lambda r: r.rank)),
            verified=bool(user.verified),
            banned=bool(user.banned),
            created_at=as_utc(user.created_at) if user.created_at else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "roles": list(self.roles),
            "verified": self.verified,
            "banned": self.banned,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> UserPublicOut:
        created = data.get("created_at")
        return cls(
            id=str(data["id"]),
            email=str(data["email"]),
            full_name=str(data["full_name"]),
            roles=tuple(data.get("roles") or ()),
            verified=bool(data.get("verified")),
            banned=bool(data.get("banned")),
            created_at=datetime.fromisoformat(created) if created else None,
        )


@dataclass(frozen=True, slots=True)
class MessageOut:
    """
    Plain acknowledgement returned by side-effect-only operations.

    :param message: Human-readable confirmation.
    :type message: str
    """

    message: str

