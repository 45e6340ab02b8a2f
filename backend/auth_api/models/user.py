"""User identity model and its role assignments."""

from __future__ import annotations

import enum
from collections.abc import Iterable

from sqlalchemy import Boolean, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from auth_api.core.extensions import db

from .base import ReprMixin, TimestampMixin, UUIDPKMixin


class Role(str, enum.Enum):
    """Access roles, from least to most privileged."""

    USER = "USER"
    ADMIN = "ADMIN"
    SUPER_ADMIN = "SUPER_ADMIN"

    @property
    def rank(self) -> int:
        return _ROLE_RANK[self]


_ROLE_RANK = {Role.USER: 0, Role.ADMIN: 1, Role.SUPER_ADMIN: 2}


class UserRole(db.Model):
    """Association row granting one :class:`Role` to one user."""

    __tablename__ = "user_roles"

    user_id: Mapped[str] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="role", native_enum=False, length=20), primary_key=True
    )


class User(UUIDPKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    email : str
        Login email, unique. Stored trimmed but otherwise as provided.
    full_name : str
        Display name.
    password_hash : str
        One-way hash produced by the configured password hasher.
    verified : bool
        Set once the email address has been confirmed.
    banned : bool
        Administrative lock; banned users cannot log in or refresh.
    roles : frozenset[Role]
        Non-empty set of granted roles (backed by ``user_roles``).
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    full_name: Mapped[str] = mapped_column(String(100), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    banned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    role_links: Mapped[list[UserRole]] = relationship(
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    # -------------------- Roles --------------------
    @property
    def roles(self) -> frozenset[Role]:
        """Granted roles as an immutable set."""
        return frozenset(link.role for link in self.role_links)

    @roles.setter
    def roles(self, values: Iterable[Role | str]) -> None:
        """
        Replace the granted roles.

        :param values: Role members or their names.
        :raises ValueError: If ``values`` is empty or contains unknown names.
        """
        desired = {Role(v) for v in values}
        if not desired:
            raise ValueError("A user must hold at least one role.")
        self.role_links = [link for link in self.role_links if link.role in desired]
        present = {link.role for link in self.role_links}
        for role in sorted(desired - present, key=lambda r: r.rank):
            self.role_links.append(UserRole(role=role))

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Trim and sanity-check the email.

        :raises ValueError: If the email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip()
        # Minimal sanity check; full validation happens at API layer.
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("full_name")
    def _normalize_full_name(self, key: str, value: str) -> str:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Full name is required.")
        return value.strip()
