import re

import pytest
from sqlalchemy import select

from auth_api.models.email_confirmation import EmailConfirmation
from auth_api.services._shared.dto import UserPublicOut
from auth_api.services._shared.errors import BadRequestError, NotificationError
from auth_api.services._shared.ports import InMemoryNotifier
from auth_api.services.confirmation.service import (
    EmailConfirmationService,
    confirmation_html,
)
from tests.factories.user import UserFactory

TOKEN_RE = re.compile(r"token=([0-9a-f-]{36})")


def _view(user) -> UserPublicOut:
    return UserPublicOut.from_model(user)


class TestEmailConfirmationService:
    """Issue and consume one-shot confirmation tokens."""

    @pytest.fixture()
    def service(self, notifier, confirm_settings) -> EmailConfirmationService:
        return EmailConfirmationService(notifier=notifier, settings=confirm_settings)

    def test_issue_stores_token_and_mails_link(self, service, notifier, session):
        """Given a new user, a token is stored and its link mailed."""
        user = UserFactory(verified=False)

        token = service.issue(_view(user))

        assert TOKEN_RE.search(notifier.last.html).group(1) == token
        stored = session.execute(
            select(EmailConfirmation.email).where(EmailConfirmation.token == token)
        ).scalar_one()
        assert stored == user.email

    def test_issue_propagates_notification_failure(self, confirm_settings):
        """Given a failing notifier, the NotificationError reaches the caller."""
        service = EmailConfirmationService(
            notifier=InMemoryNotifier(fail=True), settings=confirm_settings
        )
        user = UserFactory(verified=False)

        with pytest.raises(NotificationError):
            service.issue(_view(user))

    def test_confirm_marks_user_verified_once(self, service, notifier, session):
        """Given a valid token, the user is verified and the token is spent."""
        user = UserFactory(verified=False)
        service.issue(_view(user))
        token = TOKEN_RE.search(notifier.last.html).group(1)

        assert service.confirm(token).message == "Email confirmed."

        session.refresh(user)
        assert user.verified is True
        with pytest.raises(BadRequestError):
            service.confirm(token)

    @pytest.mark.parametrize("token", ["", "   ", "unknown-token"])
    def test_confirm_rejects_bad_tokens(self, service, token):
        """Given an empty or unknown token, BadRequestError is raised."""
        with pytest.raises(BadRequestError, match="Invalid confirmation token"):
            service.confirm(token)

    def test_confirm_without_matching_user_keeps_nothing(self, service, session):
        """Given a token whose email has no user, confirmation fails."""
        token = "22222222-2222-2222-2222-222222222222"
        session.add(EmailConfirmation(token=token, email="gone@example.com"))
        session.commit()

        with pytest.raises(BadRequestError):
            service.confirm(token)

        # The failed transaction is rolled back with the token intact
        assert session.get(EmailConfirmation, token) is not None


def test_confirmation_html_escapes_link():
    html = confirmation_html('https://app.example/confirm?token=a"b')

    assert 'href="https://app.example/confirm?token=a&quot;b"' in html
