"""Email confirmation repository."""

from __future__ import annotations

from uuid import uuid4

from sqlalchemy import delete, select

from auth_api.models.email_confirmation import EmailConfirmation
from auth_api.repositories.base import BaseRepository


class EmailConfirmationRepository(BaseRepository[EmailConfirmation]):
    """Persistence-only access to pending confirmations."""

    model = EmailConfirmation

    def create(self, email: str) -> str:
        """Persist a confirmation for ``email`` and return its fresh token.

        :param email: Address awaiting confirmation.
        :returns: Opaque token to embed in the confirmation link.
        :rtype: str
        """
        token = str(uuid4())
        self.add(EmailConfirmation(token=token, email=email))
        return token

    def consume(self, token: str) -> str | None:
        """Delete the confirmation keyed by ``token``.

        :param token: Token presented by the user.
        :returns: The confirmed email, or ``None`` if the token is unknown or
            was already consumed.
        """
        email = self.session.execute(
            select(EmailConfirmation.email).where(EmailConfirmation.token == token)
        ).scalar_one_or_none()
        if email is None:
            return None
        result = self.session.execute(
            delete(EmailConfirmation)
            .where(EmailConfirmation.token == token)
            .execution_options(synchronize_session=False)
        )
        # Lost a race against a concurrent consumer.
        if result.rowcount != 1:
            return None
        return str(email)

    def delete_for_email(self, email: str) -> int:
        result = self.session.execute(
            delete(EmailConfirmation)
            .where(EmailConfirmation.email == email)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)
