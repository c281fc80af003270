from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field


class ConfigurationError(Exception):
    """Raised when the environment cannot produce usable settings."""


_DEV_SESSION_SECRET = "tasknest-dev-session-secret"


def _load_env_file() -> None:
    """Load a `.env` file if one is present; explicit TASKNEST_ENV_FILE must exist."""
    if explicit := os.getenv("TASKNEST_ENV_FILE"):
        env_file = Path(explicit)
        if not env_file.is_file():
            raise ConfigurationError(f"TASKNEST_ENV_FILE does not exist: {explicit}")
        load_dotenv(env_file, override=False)
        return

    env_file = Path.cwd() / ".env"
    if env_file.is_file():
        load_dotenv(env_file, override=False)


_load_env_file()

Environment = Literal["development", "test", "production"]
LogFormat = Literal["json", "console"]


class Settings(BaseModel):
    app_name: str = Field(default="Tasknest")
    app_env: Environment = Field(default="development")
    debug: bool = Field(default=True)
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    database_url: str = Field(default="sqlite:///./tasknest.db")
    testing: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_format: LogFormat = Field(default="json")
    log_file: str | None = Field(default=None)
    sqlalchemy_echo: bool | None = Field(default=None)  # None = auto (debug mode)
    session_secret_key: str = Field(default=_DEV_SESSION_SECRET, min_length=1)
    session_cookie_name: str = Field(default="tasknest_session", min_length=1)
    session_max_age_s: int = Field(default=14 * 24 * 60 * 60, ge=1)
    session_https_only: bool = Field(default=False)
    db_auto_init: bool = Field(default=True)
    db_auto_seed: bool = Field(default=True)


def _to_bool(value: str | None, *, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _to_bool_or_none(value: str | None) -> bool | None:
    """Parse boolean from env var, return None if not set (for auto behavior)."""
    if value is None:
        return None
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return None


def _normalize_env(value: str | None) -> Environment:
    if value is None:
        return "development"
    lowered = value.strip().lower()
    if lowered == "development":
        return "development"
    if lowered == "test":
        return "test"
    if lowered == "production":
        return "production"
    return "development"


def _normalize_log_format(value: str | None, app_env: Environment) -> LogFormat:
    if value is not None:
        lowered = value.strip().lower()
        if lowered == "console":
            return "console"
        if lowered == "json":
            return "json"
    return "console" if app_env == "development" else "json"


def _resolve_session_secret(value: str | None, app_env: Environment) -> str:
    normalized = value.strip() if value is not None else ""
    if normalized:
        return normalized
    if app_env == "production":
        raise ConfigurationError("SESSION_SECRET_KEY must be set in production.")
    return _DEV_SESSION_SECRET


def load_settings() -> Settings:
    app_env = _normalize_env(os.getenv("APP_ENV"))
    is_production = app_env == "production"
    default_db_auto_init = app_env == "development"
    default_db_auto_seed = app_env == "development"

    database_url = os.getenv("DATABASE_URL") or (
        "sqlite:///./tasknest_test.db" if app_env == "test" else "sqlite:///./tasknest.db"
    )

    return Settings(
        app_name=os.getenv("APP_NAME", "Tasknest"),
        app_env=app_env,
        debug=_to_bool(os.getenv("DEBUG"), default=not is_production),
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        database_url=database_url,
        testing=_to_bool(os.getenv("TESTING"), default=app_env == "test"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=_normalize_log_format(os.getenv("LOG_FORMAT"), app_env),
        log_file=os.getenv("LOG_FILE"),
        sqlalchemy_echo=_to_bool_or_none(os.getenv("SQLALCHEMY_ECHO")),
        session_secret_key=_resolve_session_secret(os.getenv("SESSION_SECRET_KEY"), app_env),
        session_cookie_name=os.getenv("SESSION_COOKIE_NAME", "tasknest_session"),
        session_max_age_s=int(os.getenv("SESSION_MAX_AGE_S", str(14 * 24 * 60 * 60))),
        session_https_only=_to_bool(os.getenv("SESSION_HTTPS_ONLY"), default=is_production),
        db_auto_init=_to_bool(os.getenv("DB_AUTO_INIT"), default=default_db_auto_init),
        db_auto_seed=_to_bool(os.getenv("DB_AUTO_SEED"), default=default_db_auto_seed),
    )


def resolve_sqlalchemy_echo(settings: Settings) -> bool:
    # SQLALCHEMY_ECHO wins; otherwise echo only in debug outside of tests
    if settings.sqlalchemy_echo is not None:
        return settings.sqlalchemy_echo
    return settings.debug and not settings.testing


@lru_cache
def get_settings() -> Settings:
    return load_settings()
