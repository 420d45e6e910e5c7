"""``L10N_*`` settings plumbing shared by the API and the migration tooling."""

from __future__ import annotations

from collections.abc import Callable
from functools import lru_cache
from typing import Protocol

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "L10N_"
ALLOWED_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
ALLOWED_LOG_FORMATS = ("console", "json")
DEFAULT_DATABASE_URL = "sqlite:///./data/l10n.sqlite"


def l10n_settings_config(**overrides: object) -> SettingsConfigDict:
    """Settings config reading ``L10N_*`` variables and an optional ``.env`` file."""

    config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        str_strip_whitespace=True,
    )
    config.update(overrides)  # type: ignore[typeddict-item]
    return config


def create_settings_accessors[T](
    settings_type: type[T],
) -> tuple[Callable[[], T], Callable[[], T]]:
    """Return a cached ``get_settings`` and a ``reload_settings`` that rebuilds it."""

    cached = lru_cache(maxsize=1)(settings_type)

    def get_settings() -> T:
        return cached()

    def reload_settings() -> T:
        cached.cache_clear()
        return cached()

    return get_settings, reload_settings


def _choice(value: str, allowed: tuple[str, ...], env_var: str) -> str:
    if value not in allowed:
        raise ValueError(f"{env_var} must be one of: {', '.join(allowed)}.")
    return value


def normalize_log_format(value: str, *, env_var: str = f"{ENV_PREFIX}LOG_FORMAT") -> str:
    return _choice(value.strip().lower(), ALLOWED_LOG_FORMATS, env_var)


def normalize_log_level(value: str | None, *, env_var: str) -> str | None:
    if value is None:
        return None
    return _choice(value.strip().upper(), ALLOWED_LOG_LEVELS, env_var)


class DatabaseSettingsProtocol(Protocol):
    database_url: str
    database_echo: bool
    database_pool_size: int
    database_max_overflow: int
    database_pool_timeout: int
    database_pool_recycle: int


class DatabaseSettingsMixin:
    database_url: str = Field(default=DEFAULT_DATABASE_URL, description="SQLAlchemy URL.")
    database_echo: bool = False
    database_pool_size: int = Field(5, ge=1)
    database_max_overflow: int = Field(10, ge=0)
    database_pool_timeout: int = Field(30, gt=0)
    database_pool_recycle: int = Field(1800, ge=0)


class Settings(DatabaseSettingsMixin, BaseSettings):
    """Database-only settings, enough for ``alembic`` and the CLI migrate commands."""

    model_config = l10n_settings_config()


get_settings, reload_settings = create_settings_accessors(Settings)


__all__ = [
    "ALLOWED_LOG_FORMATS",
    "ALLOWED_LOG_LEVELS",
    "DEFAULT_DATABASE_URL",
    "ENV_PREFIX",
    "DatabaseSettingsMixin",
    "DatabaseSettingsProtocol",
    "Settings",
    "create_settings_accessors",
    "get_settings",
    "l10n_settings_config",
    "normalize_log_format",
    "normalize_log_level",
    "reload_settings",
]
