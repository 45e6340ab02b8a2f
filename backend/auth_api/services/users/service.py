"""
UserService
===========

Administrative management of the `User` aggregate: lookups, listing,
creation, role/flag edits and deletion. Route-level role guards live in the
API layer; ownership rules that depend on the target live here.
"""

from __future__ import annotations

from math import ceil

from sqlalchemy.exc import IntegrityError

from auth_api.models.user import Role
from auth_api.repositories.user import UserRepository
from auth_api.services._shared.base import BaseService, ServiceContext
from auth_api.services._shared.dto import UserPublicOut
from auth_api.services._shared.errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
    violates,
)
from auth_api.services._shared.policies import has_role, is_owner
from auth_api.services._shared.ports import PasswordHasher, RefreshTokenStore, UserCache
from auth_api.services.users.dto import UserCreateIn, UserEditIn, UserListIn, UserListOut


class UserService(BaseService):
    """
    Application service for user administration.

    :param hasher: Password hashing port (for created users).
    :param refresh_store: Refresh token store, purged on user deletion.
    :param cache: Optional read-through cache of user views.
    :param ctx: Request-scoped context carrying the acting user.
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        refresh_store: RefreshTokenStore,
        cache: UserCache,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.hasher = hasher
        self.refresh_store = refresh_store
        self.cache = cache

    # --------------------------------------------------------------------- #
    # Reads
    # --------------------------------------------------------------------- #

    def me(self, actor_id: str) -> UserPublicOut:
        """
        Return the acting user.

        :raises NotFoundError: If the account no longer exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(actor_id)
            if user is None:
                raise NotFoundError("User", actor_id)
            return UserPublicOut.from_model(user)

    def find_one(self, id_or_email: str) -> UserPublicOut:
        """
        Find a user by id or email, reading through the cache.

        :param id_or_email: User id or exact email.
        :returns: User view.
        :raises NotFoundError: If no user matches.
        """
        cached = self.cache.get(id_or_email)
        if cached is not None:
            return cached

        with self.ro_uow() as uow:
            user = uow.users.get_by_id_or_email(id_or_email)
            if user is None:
                raise NotFoundError("User", id_or_email)
            out = UserPublicOut.from_model(user)

        self.cache.set(out)
        return out

    def list_users(self, dto: UserListIn) -> UserListOut:
        """
        List users page by page, newest first unless ``created_at="asc"``.

        :param dto: Paging, role filter and sort direction.
        :returns: Page of users with the total count.
        """
        with self.ro_uow() as uow:
            repo: UserRepository = uow.users
            page = repo.paginate_filtered(
                page=dto.page,
                limit=dto.page_size,
                roles=dto.roles,
                newest_first=dto.created_at != "asc",
            )
            users = tuple(UserPublicOut.from_model(u) for u in page.items)

        return UserListOut(
            users=users,
            count=page.total,
            page=page.page,
            page_size=page.limit,
            page_count=ceil(page.total / page.limit) if page.total else 0,
        )

    # --------------------------------------------------------------------- #
    # Writes
    # --------------------------------------------------------------------- #

    def create_user(self, dto: UserCreateIn) -> UserPublicOut:
        """
        Create a user with the ``USER`` role.

        :raises ConflictError: If the email is already registered.
        """
        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                if repo.exists_by_email(dto.email):
                    raise ConflictError("User", "email already in use")
                user = repo.model(
                    email=dto.email,
                    full_name=dto.full_name,
                    password_hash=self.hasher.hash(dto.password),
                    verified=dto.verified,
                    banned=dto.banned,
                )
                user.roles = {Role.USER}
                repo.add(user)
                out = UserPublicOut.from_model(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email", columns="users.email"):
                raise ConflictError("User", "email already in use") from exc
            raise

        self.log.info("Created user", extra={"user_id": out.id, "event": "user_created"})
        return out

    def edit_user(self, user_id: str, dto: UserEditIn) -> UserPublicOut:
        """
        Update roles and/or flags of a user.

        :raises BadRequestError: If ``roles`` is given but empty.
        :raises NotFoundError: If the user does not exist.
        """
        if dto.roles is not None and not dto.roles:
            raise BadRequestError("A user must hold at least one role.")

        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            if dto.roles is not None:
                user.roles = dto.roles
            if dto.verified is not None:
                user.verified = dto.verified
            if dto.banned is not None:
                user.banned = dto.banned
            uow.users.flush()
            out = UserPublicOut.from_model(user)

        self.cache.invalidate(out.id, out.email)
        self.log.info("Edited user", extra={"user_id": out.id, "event": "user_edited"})
        return out

    def delete_user(self, user_id: str) -> UserPublicOut:
        """
        Delete a user with its refresh tokens and pending confirmations.

        The acting user may delete their own account; deleting anyone else
        requires ``ADMIN``.

        :returns: The deleted user's last view.
        :raises AuthorizationError: If the actor may not delete this user.
        :raises NotFoundError: If the user does not exist.
        """
        if not (
            is_owner(actor_id=self.ctx.actor_id, owner_id=user_id)
            or has_role(self.ctx.actor_roles, Role.ADMIN)
        ):
            raise AuthorizationError("You can only delete your own account.")

        with self.rw_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError("User", user_id)
            out = UserPublicOut.from_model(user)
            uow.email_confirmations.delete_for_email(user.email)
            uow.users.delete(user)

        # Separate unit of work: the store commits on its own
        self.refresh_store.delete_all_for_user(out.id)
        self.cache.invalidate(out.id, out.email)
        self.log.info("Deleted user", extra={"user_id": out.id, "event": "user_deleted"})
        return out
