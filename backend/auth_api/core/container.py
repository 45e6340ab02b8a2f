"""Explicit wiring of ports to concrete adapters, built once per app."""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import cast

from flask import Flask, current_app

from auth_api.core.config import AuthSettings
from auth_api.services._shared.base import ServiceContext
from auth_api.services._shared.ports import (
    Notifier,
    NullUserCache,
    PasswordHasher,
    RefreshTokenStore,
    TokenSigner,
    UserCache,
)
from auth_api.services.auth.service import AuthService
from auth_api.services.confirmation.service import EmailConfirmationService
from auth_api.services.identity.service import IdentityService
from auth_api.services.tokens.service import TokenIssuer
from auth_api.services.users.service import UserService

EXTENSION_KEY = "auth_api.registry"


@dataclass(slots=True)
class ServiceRegistry:
    """
    Process-wide collaborators handed to every service.

    :param settings: Frozen auth settings.
    :param hasher: Password hashing adapter.
    :param signer: Access token signing adapter.
    :param refresh_store: Refresh token store adapter.
    :param notifier: Email delivery adapter.
    :param user_cache: User view cache adapter.
    :param dummy_digest: Digest verified against for unknown login emails,
        made once with ``hasher``.
    """

    settings: AuthSettings
    hasher: PasswordHasher
    signer: TokenSigner
    refresh_store: RefreshTokenStore
    notifier: Notifier
    user_cache: UserCache
    dummy_digest: str | None = None


def build_registry(app: Flask) -> ServiceRegistry:
    """
    Select adapters from the app configuration.

    - ``REFRESH_TOKEN_BACKEND="redis"`` stores refresh tokens in Redis
      (requires ``REDIS_URL``); anything else uses the SQL table.
    - The user cache is enabled only with ``REDIS_URL`` *and*
      ``USER_CACHE_ENABLED``.
    - Without ``MAIL_SERVER`` mails are logged, not sent. That is only
      allowed while new accounts are auto-verified.

    :raises RuntimeError: If the Redis backend is selected without Redis,
        or email confirmation is required without ``MAIL_SERVER``.
    """
    from auth_api.infra.jwt import JWTTokenSigner
    from auth_api.infra.mail import LoggingNotifier, SMTPNotifier
    from auth_api.infra.redis import RedisRefreshTokenStore, RedisUserCache
    from auth_api.infra.security import WerkzeugPasswordHasher
    from auth_api.infra.sqlalchemy import SQLRefreshTokenStore

    settings = AuthSettings.from_config(app.config)
    redis_client = app.extensions.get("redis_client")

    backend = str(app.config.get("REFRESH_TOKEN_BACKEND", "sql")).lower()
    refresh_store: RefreshTokenStore
    if backend == "redis":
        if redis_client is None:
            raise RuntimeError("REFRESH_TOKEN_BACKEND=redis requires REDIS_URL.")
        refresh_store = RedisRefreshTokenStore(r=redis_client)
    else:
        refresh_store = SQLRefreshTokenStore()

    user_cache: UserCache = NullUserCache()
    if redis_client is not None and app.config.get("USER_CACHE_ENABLED"):
        user_cache = RedisUserCache(r=redis_client, ttl=settings.access_token_ttl)

    notifier: Notifier
    if settings.mail.configured:
        notifier = SMTPNotifier(settings=settings.mail)
    elif settings.require_email_confirmation:
        raise RuntimeError(
            "REQUIRE_EMAIL_CONFIRMATION is on but MAIL_SERVER is not set; "
            "confirmation mails could not be delivered."
        )
    else:
        notifier = LoggingNotifier()

    hasher = WerkzeugPasswordHasher(method=app.config.get("PASSWORD_HASH_METHOD"))

    return ServiceRegistry(
        settings=settings,
        hasher=hasher,
        signer=JWTTokenSigner(),
        refresh_store=refresh_store,
        notifier=notifier,
        user_cache=user_cache,
        dummy_digest=hasher.hash(secrets.token_urlsafe(32)),
    )


def init_app(app: Flask) -> None:
    """Build the registry and store it on ``app.extensions``."""
    registry = build_registry(app)
    app.extensions[EXTENSION_KEY] = registry
    app.logger.info(
        "Service registry ready: refresh_store=%s notifier=%s user_cache=%s",
        type(registry.refresh_store).__name__,
        type(registry.notifier).__name__,
        type(registry.user_cache).__name__,
    )


def get_registry(app: Flask | None = None) -> ServiceRegistry:
    """Return the registry of ``app`` (or of the current app)."""
    target = app or current_app
    try:
        return cast(ServiceRegistry, target.extensions[EXTENSION_KEY])
    except KeyError as exc:
        raise RuntimeError("Service registry is not initialized. Call init_app().") from exc


# --------------------------------------------------------------------------- #
# Per-request service factories
# --------------------------------------------------------------------------- #


def build_confirmation_service(
    registry: ServiceRegistry, ctx: ServiceContext | None = None
) -> EmailConfirmationService:
    return EmailConfirmationService(notifier=registry.notifier, settings=registry.settings, ctx=ctx)


def build_auth_service(registry: ServiceRegistry, ctx: ServiceContext | None = None) -> AuthService:
    """Assemble :class:`AuthService` and its collaborators for one request."""
    confirmations = build_confirmation_service(registry, ctx)
    identity = IdentityService(
        hasher=registry.hasher,
        settings=registry.settings,
        confirmations=confirmations,
        dummy_digest=registry.dummy_digest,
        ctx=ctx,
    )
    issuer = TokenIssuer(
        signer=registry.signer,
        refresh_store=registry.refresh_store,
        settings=registry.settings,
        ctx=ctx,
    )
    return AuthService(
        identity=identity,
        issuer=issuer,
        confirmations=confirmations,
        refresh_store=registry.refresh_store,
        ctx=ctx,
    )


def build_user_service(registry: ServiceRegistry, ctx: ServiceContext | None = None) -> UserService:
    return UserService(
        hasher=registry.hasher,
        refresh_store=registry.refresh_store,
        cache=registry.user_cache,
        ctx=ctx,
    )
