"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env in development (no-op when missing)
load_dotenv()


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


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable.

    Blank or missing values yield ``default``; anything that is not an integer
    raises ``ValueError`` so misconfiguration fails at import time.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val.strip())
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    SECRET_KEY: str
        Flask secret. Defaults to a development-safe placeholder.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    SQLALCHEMY_TRACK_MODIFICATIONS: bool
        Disabled to avoid extra overhead from the event system.
    SQLALCHEMY_ECHO: bool
        When ``True`` SQLAlchemy logs SQL statements for debugging.
    PROPAGATE_EXCEPTIONS: bool
        Controls Flask error propagation.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    TOKEN_ID_ALLOW_WEAK_FALLBACK: bool
        Allow the non-cryptographic last-resort source when every strong
        entropy source fails. Off by default: identifier generation raises
        instead of issuing guessable tokens.
    TOKEN_ID_DEVICE_PATH: str
        Platform entropy device read by the third source in the chain.
    ACCESS_TOKEN_TTL_SECONDS: int
        Default lifetime of newly issued access tokens.
    REFRESH_TOKEN_TTL_SECONDS: int
        Default lifetime of newly issued refresh tokens.
    DEBUG: bool
        Toggles Flask debug mode.
    TESTING: bool
        Enables Flask testing mode when ``True``.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Token identifiers
    TOKEN_ID_ALLOW_WEAK_FALLBACK = env_bool("TOKEN_ID_ALLOW_WEAK_FALLBACK", False)
    TOKEN_ID_DEVICE_PATH = os.getenv("TOKEN_ID_DEVICE_PATH", "/dev/urandom")

    # Token lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 3600)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 30 * 24 * 3600)

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


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Propagates exceptions so pytest can surface tracebacks directly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled and never allows the weak
    identifier fallback, whatever the environment says.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    TOKEN_ID_ALLOW_WEAK_FALLBACK = False


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
