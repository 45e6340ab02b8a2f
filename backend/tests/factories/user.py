"""Factory Boy definitions for users and refresh tokens."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import factory
from werkzeug.security import generate_password_hash

from auth_api.core.config import TestingConfig
from auth_api.models.base import utcnow
from auth_api.models.refresh_token import RefreshToken
from auth_api.models.user import Role, User, UserRole
from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd1"


class UserFactory(BaseFactory):
    """
    Build persisted :class:`auth_api.models.user.User` instances.

    Notes
    -----
    - ``password`` and ``roles`` are parameters: the password is hashed with
      the testing method and roles become ``user_roles`` rows.
    - Users are verified and not banned unless stated otherwise.
    """

    class Meta:
        model = User

    class Params:
        password = DEFAULT_PASSWORD
        roles = (Role.USER,)

    email = factory.Sequence(lambda n: f"user{n}@example.com")
    full_name = factory.Faker("name")
    password_hash = factory.LazyAttribute(
        lambda o: generate_password_hash(o.password, method=TestingConfig.PASSWORD_HASH_METHOD)
    )
    verified = True
    banned = False
    role_links = factory.LazyAttribute(
        lambda o: [UserRole(role=Role(r)) for r in dict.fromkeys(o.roles)]
    )


class RefreshTokenFactory(BaseFactory):
    """Persisted refresh token row for an existing user."""

    class Meta:
        model = RefreshToken

    token = factory.LazyFunction(lambda: str(uuid4()))
    user_id = factory.LazyAttribute(lambda o: UserFactory().id)
    user_agent = factory.Faker("user_agent")
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(days=30))
