"""
IdentityService
===============

Aggregate service responsible for user credentials:
- Registration (with optional email confirmation)
- Credential verification (no token issuance)
"""

from __future__ import annotations

import secrets

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth_api.core.config import AuthSettings
from auth_api.models.user import Role
from auth_api.repositories.user import UserRepository
from auth_api.services._shared.base import BaseService, ServiceContext
from auth_api.services._shared.dto import UserPublicOut
from auth_api.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    InternalServiceError,
    NotificationError,
    StorageError,
    violates,
)
from auth_api.services._shared.ports import PasswordHasher
from auth_api.services.confirmation.service import EmailConfirmationService
from auth_api.services.identity.dto import RegisterIn

INVALID_CREDENTIALS = "Invalid credentials"


class IdentityService(BaseService):
    """
    Application service for the `User` credentials.

    Responsibilities
    ----------------
    - Register users ensuring email uniqueness.
    - Verify credentials without revealing which part was wrong.
    - Compensate a registration whose confirmation mail cannot be sent.

    :param hasher: Password hashing port.
    :param settings: Auth settings (confirmation policy).
    :param confirmations: Issues confirmation tokens and mails them.
    :param dummy_digest: Digest of a random secret made with ``hasher``,
        verified against when the email is unknown. Computed on first use
        when omitted.
    :param ctx: Request-scoped context.
    """

    def __init__(
        self,
        *,
        hasher: PasswordHasher,
        settings: AuthSettings,
        confirmations: EmailConfirmationService,
        dummy_digest: str | None = None,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.hasher = hasher
        self.settings = settings
        self.confirmations = confirmations
        self._dummy_digest = dummy_digest

    # --------------------------------------------------------------------- #
    # Registration
    # --------------------------------------------------------------------- #

    def register(self, dto: RegisterIn) -> UserPublicOut:
        """
        Register a new user.

        When confirmation is required the user starts unverified and a
        confirmation mail is sent. If that mail cannot be stored or sent, the
        user is deleted again and the registration fails.

        :param dto: User registration input DTO.
        :type dto: RegisterIn
        :returns: Public-safe user DTO.
        :rtype: UserPublicOut
        :raises ConflictError: If the email is already registered.
        :raises InternalServiceError: On storage or notification failures.
        """
        log = self.log.bind(email=dto.email)
        log.info("Register user", extra={"event": "register"})
        require_confirmation = self.settings.require_email_confirmation

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users

                if repo.exists_by_email(dto.email):
                    log.warning("Email already registered", extra={"event": "register_conflict"})
                    raise ConflictError("User", "email already in use")

                user = repo.model(
                    email=dto.email,
                    full_name=dto.full_name,
                    password_hash=self.hasher.hash(dto.password),
                    verified=not require_confirmation,
                    banned=False,
                )
                user.roles = {Role.USER}
                repo.add(user)
                out = UserPublicOut.from_model(user)
        except IntegrityError as exc:
            if violates(exc, "uq_users_email", columns="users.email"):
                raise ConflictError("User", "email already in use") from exc
            log.error("Failed to register user", exc_info=True)
            raise InternalServiceError("User could not be created.") from exc
        except SQLAlchemyError as exc:
            log.error("Failed to register user", exc_info=True)
            raise InternalServiceError("User could not be created.") from exc

        if require_confirmation:
            try:
                self.confirmations.issue(out)
            except (NotificationError, StorageError) as exc:
                log.error(
                    "Failed to send confirmation mail; removing user",
                    extra={"user_id": out.id, "event": "register_compensate"},
                )
                self._discard_registration(out)
                raise InternalServiceError("Registration failed.") from exc

        log.info("Registered new user", extra={"user_id": out.id, "event": "registered"})
        return out

    def _discard_registration(self, user: UserPublicOut) -> None:
        """Delete an unconfirmable user and its confirmations, best effort."""
        try:
            with self.rw_uow() as uow:
                uow.email_confirmations.delete_for_email(user.email)
                row = uow.users.get(user.id)
                if row is not None:
                    uow.users.delete(row)
        except SQLAlchemyError:
            self.log.error(
                "Compensating delete failed; orphan unconfirmed user left behind",
                extra={"user_id": user.id, "event": "register_orphan"},
                exc_info=True,
            )

    # --------------------------------------------------------------------- #
    # Authentication
    # --------------------------------------------------------------------- #

    def verify_credentials(self, email: str, password: str) -> UserPublicOut:
        """
        Authenticate a user by email and password.

        :param email: Login email.
        :param password: Raw password.
        :returns: The matching user.
        :rtype: UserPublicOut
        :raises AuthenticationError: When the user is unknown or the password
            does not match (same message and same hashing cost for both).
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            digest = user.password_hash if user is not None else self.dummy_digest()
            if not self.hasher.verify(password, digest) or user is None:
                self.log.warning(
                    "Login failed. Invalid credentials",
                    extra={"email": email, "event": "login_failed"},
                )
                raise AuthenticationError(INVALID_CREDENTIALS)
            return UserPublicOut.from_model(user)

    def dummy_digest(self) -> str:
        """Return the digest verified against for unknown emails."""
        if self._dummy_digest is None:
            self._dummy_digest = self.hasher.hash(secrets.token_urlsafe(32))
        return self._dummy_digest

    # --------------------------------------------------------------------- #
    # Retrieval
    # --------------------------------------------------------------------- #

    def get_user(self, user_id: str) -> UserPublicOut | None:
        """
        Retrieve a user by identifier.

        :param user_id: User primary key.
        :returns: Public-safe user DTO, or ``None`` if the user is gone.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            return UserPublicOut.from_model(user) if user else None
