from datetime import UTC, datetime, timedelta

import pytest

from auth_api.models.email_confirmation import EmailConfirmation
from auth_api.models.user import Role, User
from auth_api.services._shared.base import ServiceContext
from auth_api.services._shared.errors import (
    AuthorizationError,
    BadRequestError,
    ConflictError,
    NotFoundError,
)
from auth_api.services.users.dto import UserCreateIn, UserEditIn, UserListIn
from auth_api.services.users.service import UserService
from tests.factories.user import RefreshTokenFactory, UserFactory

MISSING_ID = "00000000-0000-0000-0000-000000000000"


def _ctx(actor=None, *roles: Role) -> ServiceContext:
    return ServiceContext(
        actor_id=actor.id if actor is not None else None,
        actor_roles=frozenset(r.value for r in roles),
    )


class TestUserService:
    """Validate UserService reads, writes and ownership rules."""

    @pytest.fixture()
    def make_service(self, hasher, sql_store, user_cache):
        """Return a builder of services acting on behalf of a context."""

        def _make(ctx: ServiceContext | None = None) -> UserService:
            return UserService(hasher=hasher, refresh_store=sql_store, cache=user_cache, ctx=ctx)

        return _make

    @pytest.fixture()
    def service(self, make_service) -> UserService:
        return make_service()

    # --------------------------------------------------------------------- #
    # Reads
    # --------------------------------------------------------------------- #

    def test_me_returns_actor(self, service):
        user = UserFactory()

        assert service.me(user.id).email == user.email

    def test_me_of_deleted_account_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.me(MISSING_ID)

    def test_find_one_by_id_or_email(self, service):
        """Given either key, the same user is returned."""
        user = UserFactory()

        assert service.find_one(user.id).id == user.id
        assert service.find_one(user.email).id == user.id

    def test_find_one_reads_through_cache(self, service, user_cache):
        """Given a cached view, later lookups by email hit the cache."""
        user = UserFactory()

        first = service.find_one(user.id)

        assert user_cache.get(user.email) == first

    def test_find_one_unknown_raises_not_found(self, service):
        with pytest.raises(NotFoundError):
            service.find_one("nobody@example.com")

    def test_list_users_newest_first_by_default(self, service):
        """Given explicit creation times, the newest user comes first."""
        base = datetime(2024, 1, 1, tzinfo=UTC)
        users = [UserFactory(created_at=base + timedelta(days=i)) for i in range(3)]

        out = service.list_users(UserListIn())

        assert [u.id for u in out.users] == [u.id for u in reversed(users)]
        assert out.count == 3
        assert out.page_count == 1

    def test_list_users_pages_ascending(self, service):
        """Given page_size=2 and asc order, page 2 holds the remaining users."""
        base = datetime(2024, 1, 1, tzinfo=UTC)
        users = [UserFactory(created_at=base + timedelta(hours=i)) for i in range(5)]

        out = service.list_users(UserListIn(page=2, page_size=2, created_at="asc"))

        assert [u.id for u in out.users] == [users[2].id, users[3].id]
        assert (out.count, out.page, out.page_size, out.page_count) == (5, 2, 2, 3)

    def test_list_users_filters_by_role(self, service):
        """Given a role filter, only users holding one of the roles are listed."""
        UserFactory()
        admin = UserFactory(roles=(Role.USER, Role.ADMIN))

        out = service.list_users(UserListIn(roles=(Role.ADMIN,)))

        assert [u.id for u in out.users] == [admin.id]

    def test_list_users_empty(self, service):
        out = service.list_users(UserListIn(roles=(Role.SUPER_ADMIN,)))

        assert out.users == ()
        assert out.page_count == 0

    # --------------------------------------------------------------------- #
    # Writes
    # --------------------------------------------------------------------- #

    def test_create_user_hashes_password(self, service, hasher, session):
        out = service.create_user(
            UserCreateIn(email="made@example.com", full_name="Made Person", password="Secret12")
        )

        assert out.roles == ("USER",)
        assert out.verified is True
        stored = session.get(User, out.id)
        assert hasher.verify("Secret12", stored.password_hash)

    def test_create_user_conflict(self, service):
        UserFactory(email="taken@example.com")

        with pytest.raises(ConflictError):
            service.create_user(
                UserCreateIn(email="taken@example.com", full_name="Other One", password="Secret12")
            )

    def test_edit_user_replaces_roles_and_flags(self, service, user_cache):
        """Given new roles and flags, they are stored and the cache is dropped."""
        user = UserFactory()
        service.find_one(user.id)

        out = service.edit_user(
            user.id, UserEditIn(roles=(Role.USER, Role.ADMIN), banned=True)
        )

        assert out.roles == ("USER", "ADMIN")
        assert out.banned is True
        assert out.verified is True
        assert user_cache.get(user.id) is None

    def test_edit_user_rejects_empty_roles(self, service):
        user = UserFactory()

        with pytest.raises(BadRequestError):
            service.edit_user(user.id, UserEditIn(roles=()))

    def test_edit_unknown_user(self, service):
        with pytest.raises(NotFoundError):
            service.edit_user(MISSING_ID, UserEditIn(verified=False))

    # --------------------------------------------------------------------- #
    # Delete (ownership)
    # --------------------------------------------------------------------- #

    def test_user_can_delete_own_account(self, make_service, sql_store, session):
        """Given the owner, the account, its tokens and confirmations go."""
        user = UserFactory()
        user_id, email = user.id, user.email
        RefreshTokenFactory(user_id=user_id)
        session.add(EmailConfirmation(token="33333333-3333-3333-3333-333333333333", email=email))
        session.commit()

        out = make_service(_ctx(user, Role.USER)).delete_user(user_id)

        assert out.email == email
        assert list(sql_store.list_user_tokens(user_id)) == []
        assert session.get(EmailConfirmation, "33333333-3333-3333-3333-333333333333") is None
        with pytest.raises(NotFoundError):
            make_service().me(user_id)

    def test_user_cannot_delete_someone_else(self, make_service):
        actor = UserFactory()
        other = UserFactory()

        with pytest.raises(AuthorizationError):
            make_service(_ctx(actor, Role.USER)).delete_user(other.id)

    def test_admin_can_delete_anyone(self, make_service):
        admin = UserFactory(roles=(Role.USER, Role.ADMIN))
        other = UserFactory()
        other_id = other.id

        make_service(_ctx(admin, Role.USER, Role.ADMIN)).delete_user(other_id)

        with pytest.raises(NotFoundError):
            make_service().find_one(other_id)

    def test_admin_delete_of_unknown_user(self, make_service):
        admin = UserFactory(roles=(Role.ADMIN,))

        with pytest.raises(NotFoundError):
            make_service(_ctx(admin, Role.ADMIN)).delete_user(MISSING_ID)
