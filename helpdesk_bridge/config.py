"""Application configuration."""

from __future__ import annotations

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CUSTOM_FIELD = "Leantime issue"
DEFAULT_ORIGINATOR = "ITK Support"


class Settings(BaseSettings):
    """Runtime settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "helpdesk-bridge"
    app_env: str = "dev"
    log_level: str = "INFO"
    leantime_url: str | None = None
    leantime_api_key: str | None = None
    leantime_project_key: str | None = None
    teams_webhook: str | None = None
    http_timeout: float = 10.0
    http_proxy: str | None = None
    helpdesk_url: str = ""
    freescout_api_url: str | None = None
    freescout_api_key: str | None = None
    freescout_note_user_id: int | None = None
    leantime_custom_field: str = DEFAULT_CUSTOM_FIELD
    support_originator_name: str = DEFAULT_ORIGINATOR
    webhook_secret: str | None = None

    @field_validator("leantime_url", "helpdesk_url", "freescout_api_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, value: object) -> object:
        """Base URLs are joined with absolute paths, so drop a trailing slash."""
        if isinstance(value, str):
            return value.strip().rstrip("/")
        return value

    @field_validator("teams_webhook", "http_proxy", mode="before")
    @classmethod
    def _empty_as_none(cls, value: object) -> object:
        """Treat blank env values as unset."""
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def freescout_base_url(self) -> str:
        """FreeScout API base, falling back to the public helpdesk URL."""
        return self.freescout_api_url or self.helpdesk_url

    def http_options(self) -> dict[str, object]:
        """Keyword arguments shared by every outbound httpx client."""
        return {"timeout": self.http_timeout, "proxy": self.http_proxy}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached application settings."""
    return Settings()
