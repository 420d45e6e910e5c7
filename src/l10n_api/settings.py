"""API settings (conventional Pydantic v2)."""

from __future__ import annotations

import json
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings

from l10n_db.settings import (
    DatabaseSettingsMixin,
    create_settings_accessors,
    l10n_settings_config,
    normalize_log_format,
    normalize_log_level,
)

# ---- Defaults ---------------------------------------------------------------

DEFAULT_CORS_ORIGINS: list[str] = []
DEFAULT_JWT_ALGORITHMS: list[str] = ["HS256"]

EditorWriteScope = Literal["any_service", "owned_only"]


# ---- Settings ---------------------------------------------------------------


class Settings(DatabaseSettingsMixin, BaseSettings):
    """FastAPI settings loaded from L10N_* environment variables."""

    model_config = l10n_settings_config(enable_decoding=False, populate_by_name=True)

    # Core
    app_name: str = "Localization API"
    app_version: str = "0.1.0"
    docs_enabled: bool = True
    log_format: str = "console"
    log_level: str = "INFO"
    request_log_level: str | None = None
    access_log_enabled: bool = True

    # Server
    api_host: str = "127.0.0.1"
    api_port: int = Field(8000, ge=1, le=65535)
    server_cors_origins: list[str] = Field(default_factory=lambda: list(DEFAULT_CORS_ORIGINS))

    # Database
    database_log_level: str | None = None

    # Identity (verified bearer tokens)
    jwt_secret: SecretStr | None = None
    jwt_algorithms: list[str] = Field(default_factory=lambda: list(DEFAULT_JWT_ALGORITHMS))
    jwt_audience: str | None = None
    jwt_issuer: str | None = None
    jwt_leeway_seconds: int = Field(30, ge=0)

    # Development identity
    auth_disabled: bool = False
    auth_disabled_subject: str = "developer"
    auth_disabled_roles: list[str] = Field(default_factory=lambda: ["Admin"])

    # Access policy
    editor_write_scope: EditorWriteScope = "any_service"

    # Audit
    redaction_max_value_length: int = Field(100, ge=1)
    events_default_window_days: int = Field(30, ge=1)
    events_max_window_days: int = Field(90, ge=1)
    events_slow_query_ms: int = Field(300, ge=0)

    # ---- Validators ----

    @field_validator(
        "server_cors_origins",
        "jwt_algorithms",
        "auth_disabled_roles",
        mode="before",
    )
    @classmethod
    def _parse_string_list(cls, value: object) -> object:
        if value is None:
            return value
        if isinstance(value, str):
            raw = value.strip()
            if not raw:
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                except json.JSONDecodeError:
                    parsed = None
                if isinstance(parsed, list):
                    return parsed
            return [item.strip() for item in raw.split(",") if item.strip()]
        if isinstance(value, tuple):
            return list(value)
        return value

    @field_validator("editor_write_scope", mode="before")
    @classmethod
    def _normalize_editor_write_scope(cls, value: object) -> object:
        if value is None:
            return "any_service"
        return str(value).strip().lower()

    @model_validator(mode="after")
    def _finalize(self) -> Settings:
        self.log_format = normalize_log_format(self.log_format, env_var="L10N_LOG_FORMAT")

        normalized_log_level = normalize_log_level(self.log_level, env_var="L10N_LOG_LEVEL")
        if normalized_log_level is None:
            raise ValueError("L10N_LOG_LEVEL must not be empty.")
        self.log_level = normalized_log_level

        self.request_log_level = normalize_log_level(
            self.request_log_level,
            env_var="L10N_REQUEST_LOG_LEVEL",
        )
        self.database_log_level = normalize_log_level(
            self.database_log_level,
            env_var="L10N_DATABASE_LOG_LEVEL",
        )

        if not self.jwt_algorithms:
            raise ValueError("L10N_JWT_ALGORITHMS must list at least one algorithm.")
        if self.events_default_window_days > self.events_max_window_days:
            raise ValueError(
                "L10N_EVENTS_DEFAULT_WINDOW_DAYS must not exceed L10N_EVENTS_MAX_WINDOW_DAYS."
            )
        return self

    # ---- Convenience ----

    @property
    def effective_request_log_level(self) -> str:
        return self.request_log_level or self.log_level

    @property
    def jwt_secret_value(self) -> str | None:
        if self.jwt_secret is None:
            return None
        return self.jwt_secret.get_secret_value()


get_settings, reload_settings = create_settings_accessors(Settings)


__all__ = [
    "DEFAULT_CORS_ORIGINS",
    "EditorWriteScope",
    "Settings",
    "get_settings",
    "reload_settings",
]
