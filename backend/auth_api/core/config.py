"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Load .env in development (no-op when the file does not exist)
load_dotenv()

_DURATION_RE: Final = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)
_DURATION_UNITS: Final[Mapping[str, str]] = {
    "ms": "milliseconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
    "w": "weeks",
}


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_duration(value: str | int | timedelta) -> timedelta:
    """Convert a compact duration such as ``"5m"`` or ``"30d"`` into a timedelta.

    Parameters
    ----------
    value: str | int | datetime.timedelta
        Duration literal. Bare integers are interpreted as seconds. Supported
        suffixes are ``ms``, ``s``, ``m``, ``h``, ``d`` and ``w``.

    Returns
    -------
    datetime.timedelta
        Parsed duration.

    Raises
    ------
    ValueError
        If the literal cannot be parsed or is not positive.
    """
    if isinstance(value, timedelta):
        parsed = value
    elif isinstance(value, int):
        parsed = timedelta(seconds=value)
    else:
        match = _DURATION_RE.match(str(value))
        if match is None:
            raise ValueError(f"Invalid duration literal: {value!r}")
        amount, unit = match.groups()
        parsed = timedelta(**{_DURATION_UNITS[(unit or "s").lower()]: int(amount)})
    if parsed <= timedelta(0):
        raise ValueError(f"Duration must be positive: {value!r}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing. Defaults to a development-safe
        placeholder and should be overridden in production.
    JWT_SECRET_KEY: str
        Key used by ``flask-jwt-extended`` for signing access tokens.
    JWT_EXP: str
        Access token lifetime as a compact duration (``"5m"``).
    REFRESH_TOKEN_TTL: str
        Refresh token lifetime as a compact duration (``"30d"``).
    REFRESH_TOKEN_BACKEND: str
        ``"sql"`` (default) or ``"redis"``; selects the refresh token store.
    REQUIRE_EMAIL_CONFIRMATION: bool | None
        Force or disable the email confirmation step. ``None`` means "only in
        production".
    FRONTEND_URL: str
        Base URL used to build confirmation links.
    MAIL_SERVER: str | None
        SMTP host. When unset, mails are only logged, and start-up fails if
        email confirmation is required.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    APP_ENV = "development"
    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_TOKEN_LOCATION = ["headers"]
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD") or None

    # Token lifecycle
    JWT_EXP = os.getenv("JWT_EXP", "5m")
    REFRESH_TOKEN_TTL = os.getenv("REFRESH_TOKEN_TTL", "30d")
    REFRESH_TOKEN_BACKEND = os.getenv("REFRESH_TOKEN_BACKEND", "sql")
    REFRESH_COOKIE_NAME = "refresh_token"

    # Registration
    REQUIRE_EMAIL_CONFIRMATION: bool | None = (
        env_bool("REQUIRE_EMAIL_CONFIRMATION") if os.getenv("REQUIRE_EMAIL_CONFIRMATION") else None
    )
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

    # Mail transport
    MAIL_SERVER = os.getenv("MAIL_SERVER") or None
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME") or None
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD") or None
    MAIL_USE_TLS = env_bool("MAIL_USE_TLS", True)
    MAIL_USE_SSL = env_bool("MAIL_USE_SSL", False)
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@localhost")
    MAIL_TIMEOUT = int(os.getenv("MAIL_TIMEOUT", "10"))

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Redis (optional) & user cache
    REDIS_URL = os.getenv("REDIS_URL") or None
    USER_CACHE_ENABLED = env_bool("USER_CACHE_ENABLED", False)

    # Rate limiting
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Disables rate limiting and uses a fast password hash.
    """

    APP_ENV = "testing"
    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = True
    RATELIMIT_ENABLED = False
    PASSWORD_HASH_METHOD = "pbkdf2:sha256:1000"
    JWT_SECRET_KEY = "testing-only-jwt-secret-0123456789abcdef"
    REDIS_URL = None
    MAIL_SERVER = None


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and requires email confirmation
    unless ``REQUIRE_EMAIL_CONFIRMATION`` explicitly says otherwise.
    """

    APP_ENV = "production"
    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


# --------------------------------------------------------------------------- #
# Explicit settings handed to services
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class MailSettings:
    """
    SMTP transport settings.

    :param server: SMTP host; ``None`` disables delivery.
    :param port: SMTP port.
    :param username: Login user, if the server requires authentication.
    :param password: Login password.
    :param use_tls: Upgrade the connection with STARTTLS.
    :param use_ssl: Connect with implicit TLS (``SMTP_SSL``).
    :param sender: ``From`` address.
    :param timeout: Socket timeout in seconds.
    """

    server: str | None
    port: int = 587
    username: str | None = None
    password: str | None = None
    use_tls: bool = True
    use_ssl: bool = False
    sender: str = "no-reply@localhost"
    timeout: int = 10

    @property
    def configured(self) -> bool:
        return bool(self.server)


@dataclass(frozen=True, slots=True)
class AuthSettings:
    """
    Token lifecycle and registration settings, assembled once per app.

    :param access_token_ttl: Lifetime of signed access tokens.
    :param refresh_token_ttl: Lifetime of refresh tokens.
    :param require_email_confirmation: Whether new accounts start unverified.
    :param frontend_url: Base URL for confirmation links (no trailing slash).
    :param refresh_cookie_name: Cookie carrying the refresh token.
    :param secure_cookies: Mark cookies ``Secure``.
    :param mail: SMTP settings for the notifier.
    """

    access_token_ttl: timedelta = timedelta(minutes=5)
    refresh_token_ttl: timedelta = timedelta(days=30)
    require_email_confirmation: bool = False
    frontend_url: str = "http://localhost:5173"
    refresh_cookie_name: str = "refresh_token"
    secure_cookies: bool = False
    mail: MailSettings = MailSettings(server=None)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> AuthSettings:
        """Build settings from a Flask config mapping.

        :param config: ``app.config`` or any mapping with the same keys.
        :returns: Frozen settings instance.
        :raises ValueError: If a duration literal is malformed.
        """
        production = str(config.get("APP_ENV", "development")).lower() == "production"
        require_confirmation = config.get("REQUIRE_EMAIL_CONFIRMATION")
        if require_confirmation is None:
            require_confirmation = production
        mail = MailSettings(
            server=config.get("MAIL_SERVER"),
            port=int(config.get("MAIL_PORT", 587)),
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            use_ssl=bool(config.get("MAIL_USE_SSL", False)),
            sender=str(config.get("MAIL_DEFAULT_SENDER", "no-reply@localhost")),
            timeout=int(config.get("MAIL_TIMEOUT", 10)),
        )
        return cls(
            access_token_ttl=parse_duration(config.get("JWT_EXP", "5m")),
            refresh_token_ttl=parse_duration(config.get("REFRESH_TOKEN_TTL", "30d")),
            require_email_confirmation=bool(require_confirmation),
            frontend_url=str(config.get("FRONTEND_URL", "http://localhost:5173")).rstrip("/"),
            refresh_cookie_name=str(config.get("REFRESH_COOKIE_NAME", "refresh_token")),
            secure_cookies=production,
            mail=mail,
        )
