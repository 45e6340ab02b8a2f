"""Ownership and role-rank checks used by the services and route guards."""

from __future__ import annotations

import pytest

from auth_api.models.user import Role
from auth_api.services._shared.policies import has_role, is_owner
from tests.factories.user import UserFactory


@pytest.mark.parametrize(
    ("granted", "required", "expected"),
    [
        ({Role.USER}, Role.USER, True),
        ({Role.USER}, Role.ADMIN, False),
        ({Role.ADMIN}, Role.USER, True),
        ({Role.SUPER_ADMIN}, Role.ADMIN, True),
        ({Role.ADMIN}, Role.SUPER_ADMIN, False),
        (["USER", "ADMIN"], Role.ADMIN, True),
        (["ROOT"], Role.USER, False),
        (["ROOT", "SUPER_ADMIN"], Role.SUPER_ADMIN, True),
        ((), Role.USER, False),
        (None, Role.USER, False),
    ],
)
def test_has_role_follows_rank(granted, required, expected):
    assert has_role(granted, required) is expected


def test_has_role_accepts_model_roles():
    user = UserFactory(roles=(Role.USER, Role.ADMIN))

    assert has_role(user.roles, Role.ADMIN) is True
    assert has_role(user.roles, Role.SUPER_ADMIN) is False


@pytest.mark.parametrize(
    ("actor_id", "owner_id", "expected"),
    [
        ("abc", "abc", True),
        ("abc", "xyz", False),
        (None, "abc", False),
    ],
)
def test_is_owner(actor_id, owner_id, expected):
    assert is_owner(actor_id=actor_id, owner_id=owner_id) is expected
