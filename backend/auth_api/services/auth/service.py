# auth_api/services/auth/service.py
from __future__ import annotations

from auth_api.services._shared.base import BaseService, ServiceContext
from auth_api.services._shared.dto import MessageOut, UserPublicOut
from auth_api.services._shared.errors import AuthenticationError, AuthorizationError
from auth_api.services._shared.ports import RefreshTokenStore
from auth_api.services.auth.dto import LoginIn, LoginOut
from auth_api.services.confirmation.service import EmailConfirmationService
from auth_api.services.identity.dto import RegisterIn
from auth_api.services.identity.service import IdentityService
from auth_api.services.tokens.service import TokenIssuer, normalize_device

INVALID_REFRESH_TOKEN = "Invalid refresh token"


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout / confirm).

    Account-state gates are checked in a fixed order: ``verified`` first,
    then ``banned``. They apply on login *and* on every refresh, so a ban
    takes effect at the next refresh at the latest.
    """

    def __init__(
        self,
        *,
        identity: IdentityService,
        issuer: TokenIssuer,
        confirmations: EmailConfirmationService,
        refresh_store: RefreshTokenStore,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param identity: Credential verifier and registration.
        :param issuer: Token pair issuance and rotation.
        :param confirmations: Email confirmation register.
        :param refresh_store: Refresh token store (lookups and deletion).
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.identity = identity
        self.issuer = issuer
        self.confirmations = confirmations
        self.refresh_store = refresh_store

    # ------------------------------------------------------------------ #
    # Register / confirm
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn) -> UserPublicOut:
        return self.identity.register(dto)

    def confirm_email(self, token: str) -> MessageOut:
        return self.confirmations.confirm(token)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn, device: str | None) -> LoginOut:
        """
        Authenticate credentials and issue a token pair for ``device``.

        :param dto: Login input.
        :param device: Client device string (``User-Agent``).
        :returns: User view and token pair.
        :raises AuthenticationError: If credentials are invalid.
        :raises AuthorizationError: If the account is unverified or banned.
        """
        user = self.identity.verify_credentials(dto.email, dto.password)
        self._ensure_active(user, action="Login")

        tokens = self.issuer.issue_token_pair(user, device)
        self.log.info(
            "Logged in user",
            extra={"user_id": user.id, "device": normalize_device(device), "event": "login"},
        )
        return LoginOut(user=user, tokens=tokens)

    # ------------------------------------------------------------------ #
    # Refresh with rotation
    # ------------------------------------------------------------------ #

    def refresh(self, token: str | None, device: str | None) -> LoginOut:
        """
        Exchange a refresh token for a new pair.

        Security
        --------
        - The token must exist server-side and be unexpired. An expired
          record is deleted when detected, then rejected.
        - Tokens of deleted users are deleted and rejected.
        - ``verified`` and ``banned`` are re-checked.
        - The presented value is single-use: rotation replaces it.

        :param token: Presented refresh token value.
        :param device: Client device string.
        :returns: User view and the rotated token pair.
        :raises AuthenticationError: Missing, unknown or expired token.
        :raises AuthorizationError: Account is unverified or banned.
        """
        if not token:
            self.log.warning("Refresh token missing", extra={"event": "refresh_failed"})
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        record = self.refresh_store.get(token)
        if record is None:
            self.log.warning("Unknown refresh token", extra={"event": "refresh_failed"})
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        if record.is_expired(self.now_utc()):
            self.refresh_store.delete(token)
            self.log.warning(
                "Expired refresh token deleted",
                extra={"user_id": record.user_id, "event": "refresh_expired"},
            )
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        user = self.identity.get_user(record.user_id)
        if user is None:
            self.refresh_store.delete(token)
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        self._ensure_active(user, action="Refresh")

        tokens = self.issuer.rotate_token_pair(user, token, device)
        self.log.info("Refreshed tokens", extra={"user_id": user.id, "event": "refresh"})
        return LoginOut(user=user, tokens=tokens)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, token: str | None) -> MessageOut:
        """
        Delete the presented refresh token.

        :param token: Refresh token value.
        :returns: Acknowledgement message.
        :raises AuthenticationError: If the token is missing or unknown.
        """
        if not token or not self.refresh_store.delete(token):
            self.log.warning("Logout with invalid refresh token", extra={"event": "logout_failed"})
            raise AuthenticationError(INVALID_REFRESH_TOKEN)

        self.log.info("User logged out", extra={"event": "logout"})
        return MessageOut(message="Logged out.")

    # ------------------------------------------------------------------ #
    # Gates
    # ------------------------------------------------------------------ #

    def _ensure_active(self, user: UserPublicOut, *, action: str) -> None:
        if not user.verified:
            self.log.warning(
                "%s failed. User not verified", action, extra={"user_id": user.id}
            )
            raise AuthorizationError("User is not verified.")
        if user.banned:
            self.log.warning("%s failed. User banned", action, extra={"user_id": user.id})
            raise AuthorizationError("User is banned.")
