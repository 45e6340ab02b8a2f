"""Adapter selection performed by the service registry."""

from __future__ import annotations

import fakeredis
import pytest
from flask import Flask

from auth_api.core.config import TestingConfig
from auth_api.core.container import (
    EXTENSION_KEY,
    build_auth_service,
    build_registry,
    get_registry,
)
from auth_api.infra.mail import LoggingNotifier, SMTPNotifier
from auth_api.infra.redis import RedisRefreshTokenStore, RedisUserCache
from auth_api.infra.sqlalchemy import SQLRefreshTokenStore
from auth_api.services._shared.ports import NullUserCache


@pytest.fixture
def bare_app() -> Flask:
    app = Flask("container-test")
    app.config.from_object(TestingConfig)
    return app


class TestBuildRegistry:
    def test_defaults_to_sql_store_and_logging_notifier(self, bare_app):
        registry = build_registry(bare_app)

        assert isinstance(registry.refresh_store, SQLRefreshTokenStore)
        assert isinstance(registry.notifier, LoggingNotifier)
        assert isinstance(registry.user_cache, NullUserCache)

    def test_redis_backend_and_cache(self, bare_app):
        bare_app.extensions["redis_client"] = fakeredis.FakeRedis()
        bare_app.config.update(REFRESH_TOKEN_BACKEND="redis", USER_CACHE_ENABLED=True)

        registry = build_registry(bare_app)

        assert isinstance(registry.refresh_store, RedisRefreshTokenStore)
        assert isinstance(registry.user_cache, RedisUserCache)
        assert registry.user_cache.ttl == registry.settings.access_token_ttl

    def test_redis_backend_without_client_fails(self, bare_app):
        bare_app.config.update(REFRESH_TOKEN_BACKEND="redis")

        with pytest.raises(RuntimeError, match="REDIS_URL"):
            build_registry(bare_app)

    def test_mail_server_selects_smtp(self, bare_app):
        bare_app.config.update(MAIL_SERVER="smtp.example.com")

        assert isinstance(build_registry(bare_app).notifier, SMTPNotifier)

    @pytest.mark.parametrize(
        "overrides",
        [
            {"APP_ENV": "production", "REQUIRE_EMAIL_CONFIRMATION": None},
            {"REQUIRE_EMAIL_CONFIRMATION": True},
        ],
    )
    def test_confirmation_without_mail_server_fails(self, bare_app, overrides):
        bare_app.config.update(MAIL_SERVER=None, **overrides)

        with pytest.raises(RuntimeError, match="MAIL_SERVER"):
            build_registry(bare_app)

    def test_production_with_mail_server_sends(self, bare_app):
        bare_app.config.update(
            APP_ENV="production", REQUIRE_EMAIL_CONFIRMATION=None, MAIL_SERVER="smtp.example.com"
        )

        registry = build_registry(bare_app)

        assert registry.settings.require_email_confirmation is True
        assert isinstance(registry.notifier, SMTPNotifier)

    def test_auto_verify_keeps_logging_notifier(self, bare_app):
        bare_app.config.update(APP_ENV="production", REQUIRE_EMAIL_CONFIRMATION=False)

        assert isinstance(build_registry(bare_app).notifier, LoggingNotifier)


def test_get_registry_requires_init(bare_app):
    with pytest.raises(RuntimeError, match="not initialized"):
        get_registry(bare_app)


def test_app_registry_builds_services(app):
    registry = app.extensions[EXTENSION_KEY]

    service = build_auth_service(registry)

    assert service.refresh_store is registry.refresh_store
    assert service.issuer.settings is registry.settings


def test_registry_precomputes_dummy_digest_with_app_method(bare_app):
    registry = build_registry(bare_app)

    identity = build_auth_service(registry).identity

    assert registry.dummy_digest.startswith(TestingConfig.PASSWORD_HASH_METHOD)
    assert identity.dummy_digest() == registry.dummy_digest
