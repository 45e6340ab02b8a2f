"""HTTP tests for the user endpoints and their role guards."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from auth_api.models.user import Role
from tests.factories.user import RefreshTokenFactory, UserFactory
from tests.helpers.utils import JSON_PROBLEM, access_token_for, bearer

BASE = "/api/v1/users"


@pytest.fixture()
def user():
    return UserFactory()


@pytest.fixture()
def admin():
    return UserFactory(roles=(Role.USER, Role.ADMIN))


@pytest.fixture()
def super_admin():
    return UserFactory(roles=(Role.USER, Role.ADMIN, Role.SUPER_ADMIN))


def auth(user) -> dict[str, str]:
    return bearer(access_token_for(user))


class TestGuards:
    def test_missing_token_is_unauthorized(self, client):
        resp = client.get(f"{BASE}/me")

        assert resp.status_code == 401
        assert resp.mimetype == JSON_PROBLEM
        assert resp.get_json()["code"] == "unauthorized"

    def test_garbage_token_is_unauthorized(self, client):
        resp = client.get(f"{BASE}/me", headers=bearer("not.a.jwt"))

        assert resp.status_code == 401

    @pytest.mark.parametrize(
        ("method", "path"),
        [("get", ""), ("post", ""), ("get", "/someone@example.com"), ("patch", "/some-id")],
    )
    def test_plain_user_is_forbidden_on_admin_routes(self, client, user, method, path):
        resp = getattr(client, method)(f"{BASE}{path}", headers=auth(user), json={})

        assert resp.status_code == 403
        assert resp.get_json()["detail"] == "Insufficient role"

    def test_admin_cannot_edit(self, client, admin, user):
        resp = client.patch(f"{BASE}/{user.id}", headers=auth(admin), json={"banned": True})

        assert resp.status_code == 403


class TestMe:
    def test_me_returns_current_user(self, client, user):
        resp = client.get(f"{BASE}/me", headers=auth(user))

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["id"] == user.id
        assert data["email"] == user.email
        assert set(data) == {
            "id",
            "email",
            "full_name",
            "roles",
            "verified",
            "banned",
            "created_at",
        }

    def test_me_after_account_deletion_is_not_found(self, client, user, session):
        headers = auth(user)
        session.delete(user)
        session.commit()

        assert client.get(f"{BASE}/me", headers=headers).status_code == 404


class TestAdministration:
    def test_list_pages_sorted_and_filtered(self, client, admin):
        base = datetime(2020, 1, 1, tzinfo=UTC)
        older = [UserFactory(created_at=base + timedelta(days=i)) for i in range(3)]

        resp = client.get(
            BASE, headers=auth(admin), query_string={"page_size": 2, "created_at": "asc"}
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert [u["id"] for u in data["users"]] == [older[0].id, older[1].id]
        assert (data["count"], data["page"], data["page_size"], data["page_count"]) == (4, 1, 2, 2)

        admins = client.get(BASE, headers=auth(admin), query_string={"roles": "ADMIN"})
        assert [u["id"] for u in admins.get_json()["data"]["users"]] == [admin.id]

    def test_list_rejects_oversized_page(self, client, admin):
        resp = client.get(BASE, headers=auth(admin), query_string={"page_size": 50})

        assert resp.status_code == 400
        assert "page_size" in resp.get_json()["details"]["errors"]

    def test_create_and_find(self, client, admin):
        payload = {"email": "made@example.com", "full_name": "Made Person", "password": "secret12"}

        created = client.post(BASE, headers=auth(admin), json=payload)

        assert created.status_code == 201
        body = created.get_json()["data"]
        assert body["verified"] is True
        assert body["roles"] == ["USER"]

        by_email = client.get(f"{BASE}/made@example.com", headers=auth(admin))
        by_id = client.get(f"{BASE}/{body['id']}", headers=auth(admin))
        assert by_email.get_json()["data"] == by_id.get_json()["data"] == body

    def test_create_duplicate_conflicts(self, client, admin, user):
        payload = {"email": user.email, "full_name": "Other Person", "password": "secret12"}

        assert client.post(BASE, headers=auth(admin), json=payload).status_code == 409

    def test_find_unknown_is_not_found(self, client, admin):
        assert client.get(f"{BASE}/ghost@example.com", headers=auth(admin)).status_code == 404

    def test_super_admin_edits_roles_and_flags(self, client, super_admin, user):
        resp = client.patch(
            f"{BASE}/{user.id}",
            headers=auth(super_admin),
            json={"roles": ["USER", "ADMIN"], "banned": True},
        )

        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["roles"] == ["USER", "ADMIN"]
        assert data["banned"] is True

    def test_edit_rejects_empty_roles(self, client, super_admin, user):
        resp = client.patch(f"{BASE}/{user.id}", headers=auth(super_admin), json={"roles": []})

        assert resp.status_code == 400


class TestDelete:
    def test_user_deletes_own_account(self, client, user):
        user_id = user.id
        RefreshTokenFactory(user_id=user_id)
        headers = auth(user)

        resp = client.delete(f"{BASE}/{user_id}", headers=headers)

        assert resp.status_code == 200
        assert resp.get_json()["data"]["id"] == user_id
        assert client.get(f"{BASE}/me", headers=headers).status_code == 404

    def test_user_cannot_delete_others(self, client, user):
        other = UserFactory()

        resp = client.delete(f"{BASE}/{other.id}", headers=auth(user))

        assert resp.status_code == 403

    def test_admin_deletes_others(self, client, admin):
        other_id = UserFactory().id

        assert client.delete(f"{BASE}/{other_id}", headers=auth(admin)).status_code == 200
        assert client.get(f"{BASE}/{other_id}", headers=auth(admin)).status_code == 404
