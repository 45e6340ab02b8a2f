"""Unit tests for the refresh token and email confirmation repositories."""

from datetime import timedelta

import pytest

from auth_api.models.base import utcnow
from auth_api.repositories import EmailConfirmationRepository, RefreshTokenRepository
from tests.factories.user import RefreshTokenFactory, UserFactory


class TestRefreshTokenRepository:
    @pytest.fixture()
    def repo(self, session):
        return RefreshTokenRepository(session=session)

    def test_get_uses_token_as_key(self, repo):
        row = RefreshTokenFactory(token="pk-token")

        assert repo.get("pk-token").user_id == row.user_id

    def test_replace_reports_affected_row(self, repo, session):
        row = RefreshTokenFactory(token="old", user_agent="a")
        user_id = row.user_id

        assert repo.replace("old", token="new", user_agent="b", expires_at=utcnow()) is True
        assert repo.replace("old", token="newer", user_agent="b", expires_at=utcnow()) is False
        session.expire_all()
        assert repo.get_by_user_and_device(user_id, "b").token == "new"

    def test_list_for_user_sorted_by_device(self, repo):
        user_id = UserFactory().id
        RefreshTokenFactory(user_id=user_id, user_agent="zeta")
        RefreshTokenFactory(user_id=user_id, user_agent="alpha")

        assert [r.user_agent for r in repo.list_for_user(user_id)] == ["alpha", "zeta"]

    def test_delete_expired(self, repo):
        now = utcnow()
        RefreshTokenFactory(expires_at=now - timedelta(seconds=1))
        RefreshTokenFactory(expires_at=now + timedelta(days=1))

        assert repo.delete_expired(now) == 1


class TestEmailConfirmationRepository:
    @pytest.fixture()
    def repo(self, session):
        return EmailConfirmationRepository(session=session)

    def test_create_then_consume_once(self, repo):
        token = repo.create("pending@example.com")

        assert repo.consume(token) == "pending@example.com"
        assert repo.consume(token) is None

    def test_delete_for_email(self, repo):
        repo.create("many@example.com")
        repo.create("many@example.com")
        repo.create("other@example.com")

        assert repo.delete_for_email("many@example.com") == 2
