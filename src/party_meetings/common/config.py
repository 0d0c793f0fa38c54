"""
Централизованная конфигурация проекта (ENV / .env).

Важно:
- настройки читаются из .env и переменных окружения
- типизированные значения через pydantic-settings
- любое поле можно переопределить содержимым файла через <ALIAS>_FILE
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Runtime
    # -------------------------------------------------------------------------
    app_env: str = Field(default="dev", alias="APP_ENV")
    service_name: str = Field(default="party-meetings", alias="SERVICE_NAME")
    api_host: str = Field(default="0.0.0.0", alias="API_HOST")
    api_port: int = Field(default=8020, alias="API_PORT")
    cors_allowed_origins: str = Field(default="*", alias="CORS_ALLOWED_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # -------------------------------------------------------------------------
    # Auth (доступ к самому gateway)
    # -------------------------------------------------------------------------
    auth_mode: str = Field(default="api_key", alias="AUTH_MODE")  # api_key|none
    api_keys: str = Field(default="", alias="API_KEYS")
    service_api_keys: str = Field(default="", alias="SERVICE_API_KEYS")

    # -------------------------------------------------------------------------
    # Conferencing provider (Google Meet REST)
    # -------------------------------------------------------------------------
    meet_provider: str = Field(default="mock", alias="MEET_PROVIDER")  # google_meet|mock
    meet_api_base: str = Field(default="https://meet.googleapis.com/v2", alias="MEET_API_BASE")
    meet_viewer_base: str = Field(default="https://meet.google.com", alias="MEET_VIEWER_BASE")
    meet_timeout_sec: int = Field(default=10, alias="MEET_TIMEOUT_SEC")
    meet_record_page_size: int = Field(default=10, alias="MEET_RECORD_PAGE_SIZE")

    # -------------------------------------------------------------------------
    # Token broker (OAuth scopes)
    # -------------------------------------------------------------------------
    token_broker: str = Field(default="mock", alias="TOKEN_BROKER")  # oauth|static|mock
    oauth_token_url: str = Field(
        default="https://oauth2.googleapis.com/token", alias="OAUTH_TOKEN_URL"
    )
    oauth_client_id: str | None = Field(default=None, alias="OAUTH_CLIENT_ID")
    oauth_client_secret: str | None = Field(default=None, alias="OAUTH_CLIENT_SECRET")
    oauth_refresh_token: str | None = Field(default=None, alias="OAUTH_REFRESH_TOKEN")
    oauth_static_token: str | None = Field(default=None, alias="OAUTH_STATIC_TOKEN")
    oauth_timeout_sec: int = Field(default=10, alias="OAUTH_TIMEOUT_SEC")

    # -------------------------------------------------------------------------
    # Persistence (backend REST)
    # -------------------------------------------------------------------------
    persistence_mode: str = Field(default="memory", alias="PERSISTENCE_MODE")  # http|memory
    backend_api_base: str | None = Field(default=None, alias="BACKEND_API_BASE")
    backend_api_token: str | None = Field(default=None, alias="BACKEND_API_TOKEN")
    backend_timeout_sec: int = Field(default=15, alias="BACKEND_TIMEOUT_SEC")

    # -------------------------------------------------------------------------
    # Episode cache / party lock
    # -------------------------------------------------------------------------
    redis_url: str = Field(default="redis://redis:6379/0", alias="REDIS_URL")
    episode_ttl_sec: int = Field(default=86_400, alias="EPISODE_TTL_SEC")
    # TTL продлевается между шагами end; один шаг (вызов провайдера или backend)
    # должен укладываться в него с запасом: MEET_TIMEOUT_SEC * число транскриптов
    party_lock_ttl_sec: int = Field(default=300, alias="PARTY_LOCK_TTL_SEC")

    # -------------------------------------------------------------------------
    # Meeting defaults
    # -------------------------------------------------------------------------
    meeting_default_title: str = Field(default="Study Sprint", alias="MEETING_DEFAULT_TITLE")
    meeting_default_duration_min: int = Field(default=30, alias="MEETING_DEFAULT_DURATION_MIN")
    recording_sync_delay_sec: int = Field(default=300, alias="RECORDING_SYNC_DELAY_SEC")

    # -------------------------------------------------------------------------
    # Logging
    # -------------------------------------------------------------------------
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json|text

    def model_post_init(self, __context) -> None:
        _apply_file_overrides(self)


def _apply_file_overrides(settings: Settings) -> None:
    alias_to_field = {}
    for name, field in type(settings).model_fields.items():
        alias = field.alias or name
        alias_to_field[str(alias)] = name
        alias_to_field[str(name)] = name

    for key, path in os.environ.items():
        if not key.endswith("_FILE"):
            continue
        base = key[: -len("_FILE")]
        target = alias_to_field.get(base)
        if not target:
            continue
        file_path = (path or "").strip()
        if not file_path:
            continue
        try:
            raw = Path(file_path).read_text(encoding="utf-8")
        except Exception as e:
            logging.getLogger("party-meetings").error(
                "config_file_read_failed",
                extra={"payload": {"env_key": key, "path": file_path, "error": str(e)[:200]}},
            )
            raise RuntimeError(f"Failed to read {key} from {file_path}") from e
        setattr(settings, target, raw.strip())


_SETTINGS = Settings()


def get_settings() -> Settings:
    return _SETTINGS
