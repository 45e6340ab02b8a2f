# auth_api/services/tokens/service.py
from __future__ import annotations

from datetime import datetime
from typing import Any

from auth_api.core.config import AuthSettings
from auth_api.models.refresh_token import MAX_USER_AGENT_LENGTH
from auth_api.services._shared.base import BaseService, ServiceContext
from auth_api.services._shared.dto import UserPublicOut
from auth_api.services._shared.errors import AuthenticationError
from auth_api.services._shared.ports import RefreshTokenStore, TokenSigner
from auth_api.services.tokens.dto import TokenPairOut


def normalize_device(device: str | None) -> str:
    """Return the device key stored with a refresh token."""
    return (device or "")[:MAX_USER_AGENT_LENGTH]


class TokenIssuer(BaseService):
    """
    Mint access/refresh token pairs and apply the per-device rotation policy.

    The refresh record is always written *before* the access token is signed,
    so a client never holds a pair without its server-side state.

    :param signer: Access token signing port.
    :param refresh_store: Refresh token store (atomic per-device writes).
    :param settings: Token lifetimes.
    :param ctx: Request-scoped context.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        refresh_store: RefreshTokenStore,
        settings: AuthSettings,
        ctx: ServiceContext | None = None,
    ) -> None:
        super().__init__(ctx=ctx)
        self.signer = signer
        self.refresh_store = refresh_store
        self.settings = settings

    @staticmethod
    def claims_for(user: UserPublicOut) -> dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "roles": list(user.roles),
            "verified": user.verified,
        }

    def _sign(
        self, user: UserPublicOut, refresh_token: str, refresh_expires_at: datetime
    ) -> TokenPairOut:
        ttl = self.settings.access_token_ttl
        access_expires_at = self.now_utc() + ttl
        access = self.signer.sign(self.claims_for(user), ttl)
        return TokenPairOut(
            access_token=access,
            access_expires_at=access_expires_at,
            refresh_token=refresh_token,
            refresh_expires_at=refresh_expires_at,
        )

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue_token_pair(self, user: UserPublicOut, device: str | None) -> TokenPairOut:
        """
        Issue a fresh pair, replacing whatever token the device held.

        :param user: Authenticated user.
        :param device: Client device string (``User-Agent``); may be empty.
        :returns: New token pair.
        :raises StorageError: If the refresh record cannot be written.
        """
        device_key = normalize_device(device)
        record = self.refresh_store.upsert_for_device(
            user_id=user.id,
            user_agent=device_key,
            token=self.refresh_store.new_token(),
            expires_at=self.now_utc() + self.settings.refresh_token_ttl,
        )
        self.log.debug("Generated tokens for user", extra={"user_id": user.id})
        return self._sign(user, record.token, record.expires_at)

    # ------------------------------------------------------------------ #
    # Rotate
    # ------------------------------------------------------------------ #

    def rotate_token_pair(
        self, user: UserPublicOut, presented_token: str, device: str | None
    ) -> TokenPairOut:
        """
        Replace ``presented_token`` with a new value and issue a new pair.

        :param user: Owner of ``presented_token`` (already gate-checked).
        :param presented_token: Refresh token sent by the client.
        :param device: Client device string; may differ from the one the
            token was issued to, in which case the token moves to it.
        :returns: New token pair.
        :raises AuthenticationError: If the token was consumed concurrently.
        :raises StorageError: If the store fails.
        """
        record = self.refresh_store.rotate(
            old_token=presented_token,
            user_id=user.id,
            user_agent=normalize_device(device),
            token=self.refresh_store.new_token(),
            expires_at=self.now_utc() + self.settings.refresh_token_ttl,
        )
        if record is None:
            self.log.warning(
                "Refresh token consumed concurrently",
                extra={"user_id": user.id, "event": "refresh_race"},
            )
            raise AuthenticationError("Invalid refresh token")
        return self._sign(user, record.token, record.expires_at)
