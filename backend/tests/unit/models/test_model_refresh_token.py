"""Tests for refresh token and email confirmation rows."""

from __future__ import annotations

from datetime import timedelta

import pytest
from sqlalchemy.exc import IntegrityError

from auth_api.models.base import as_utc, utcnow
from auth_api.models.email_confirmation import EmailConfirmation
from auth_api.models.refresh_token import RefreshToken
from tests.factories.user import RefreshTokenFactory, UserFactory


class TestRefreshToken:
    def test_one_row_per_user_and_device(self, session):
        user_id = UserFactory().id
        RefreshTokenFactory(user_id=user_id, user_agent="ua")

        session.add(
            RefreshToken(
                token="second", user_id=user_id, user_agent="ua", expires_at=utcnow()
            )
        )
        with pytest.raises(IntegrityError):
            session.commit()
        session.rollback()

    def test_expiry_round_trips_as_utc(self, session):
        expires = utcnow() + timedelta(days=30)
        row = RefreshTokenFactory(expires_at=expires)

        session.expire(row)
        assert as_utc(row.expires_at).replace(microsecond=0) == expires.replace(microsecond=0)
        assert repr(row) == f"<RefreshToken token={row.token}>"


def test_email_confirmation_gets_created_at(session):
    row = EmailConfirmation(token="c-1", email="c@example.com")
    session.add(row)
    session.commit()

    assert row.created_at is not None
