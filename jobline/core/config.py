"""Configuration module for the JobLine engine."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from jobline.core.exceptions import ConfigurationError

load_dotenv()


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_decimal(name: str, value: str) -> Decimal:
    try:
        return Decimal(value.strip())
    except (InvalidOperation, AttributeError) as exc:
        raise ConfigurationError(f"{name} must be a decimal number.") from exc


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    LOG_LEVEL: str
    LOG_FILE: str
    DEFAULT_MARKUP_PERCENT: Decimal
    DEFAULT_CALLOUT_FEE_PERCENT: Decimal
    STAGE_GATING_ENFORCED: bool

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="JobLine",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./jobline.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "jobline.log"),
        DEFAULT_MARKUP_PERCENT=_as_decimal(
            "DEFAULT_MARKUP_PERCENT", os.getenv("DEFAULT_MARKUP_PERCENT", "0")
        ),
        DEFAULT_CALLOUT_FEE_PERCENT=_as_decimal(
            "DEFAULT_CALLOUT_FEE_PERCENT", os.getenv("DEFAULT_CALLOUT_FEE_PERCENT", "20")
        ),
        STAGE_GATING_ENFORCED=_as_bool(os.getenv("STAGE_GATING_ENFORCED"), default=True),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.DEFAULT_MARKUP_PERCENT < 0:
        raise ConfigurationError("DEFAULT_MARKUP_PERCENT must be >= 0.")
    if not Decimal("0") <= config.DEFAULT_CALLOUT_FEE_PERCENT <= Decimal("100"):
        raise ConfigurationError("DEFAULT_CALLOUT_FEE_PERCENT must be between 0 and 100.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
