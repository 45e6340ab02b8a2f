"""
EmailConfirmationService
========================

One-shot email confirmation: issue a token and mail the link, then consume
the token and mark the matching user as verified in a single transaction.
"""

from __future__ import annotations

from html import escape

from sqlalchemy.exc import SQLAlchemyError

from auth_api.core.config import AuthSettings
from auth_api.services._shared.base import BaseService, ServiceContext
from auth_api.services._shared.dto import MessageOut, UserPublicOut
from auth_api.services._shared.errors import BadRequestError, StorageError
from auth_api.services._shared.ports import Notifier

CONFIRMATION_SUBJECT = "Confirm your registration"


def confirmation_html(link: str) -> str:
    """Render the confirmation email body."""
    href = escape(link, quote=True)
    return (
        "<div>"
        "<h1>Confirm your registration</h1>"
        "<p>Follow the link below to confirm your email address.</p>"
        f'<a href="{href}">Confirm registration</a>'
        "</div>"
    )


class EmailConfirmationService(BaseService):
    """
    Application service for pending email confirmations.

    :param notifier: Outbound email port.
    :param settings: Provides ``frontend_url`` for confirmation links.
    :param ctx: Request-scoped context.
    """

    def __init__(
        self,
        *,
        notifier: Notifier,
        settings: AuthSettings,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.notifier = notifier
        self.settings = settings

    def confirmation_link(self, token: str) -> str:
        return f"{self.settings.frontend_url}/confirm?token={token}"

    # --------------------------------------------------------------------- #
    # Issue
    # --------------------------------------------------------------------- #

    def issue(self, user: UserPublicOut) -> str:
        """
        Persist a confirmation token for ``user`` and mail the link.

        :param user: Freshly registered user.
        :returns: The confirmation token.
        :raises StorageError: If the token cannot be stored.
        :raises NotificationError: If the email cannot be delivered.
        """
        log = self.log.bind(user_id=user.id)
        try:
            with self.rw_uow() as uow:
                token = uow.email_confirmations.create(user.email)
        except SQLAlchemyError as exc:
            raise StorageError("Email confirmation could not be stored.") from exc

        self.notifier.send(
            user.email,
            CONFIRMATION_SUBJECT,
            confirmation_html(self.confirmation_link(token)),
        )
        log.info("Sent confirmation mail", extra={"event": "confirmation_sent"})
        return token

    # --------------------------------------------------------------------- #
    # Confirm
    # --------------------------------------------------------------------- #

    def confirm(self, token: str) -> MessageOut:
        """
        Consume ``token`` and mark the matching user as verified.

        Both writes share one transaction: either the token is consumed and
        the user verified, or nothing changes.

        :param token: Token from the confirmation link.
        :returns: Acknowledgement message.
        :raises BadRequestError: If the token is empty, unknown or already used.
        """
        if not token or not token.strip():
            raise BadRequestError("Invalid confirmation token.")

        with self.rw_uow() as uow:
            email = uow.email_confirmations.consume(token.strip())
            if email is None:
                self.log.warning("Invalid confirmation token", extra={"event": "confirm_failed"})
                raise BadRequestError("Invalid confirmation token.")
            user = uow.users.get_by_email(email)
            if user is None:
                raise BadRequestError("Invalid confirmation token.")
            user.verified = True
            user_id = user.id

        self.log.info("Confirmed email", extra={"user_id": user_id, "event": "email_confirmed"})
        return MessageOut(message="Email confirmed.")
