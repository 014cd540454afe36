"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    ledger_max_attempts: int = 3
    ledger_backoff_seconds: float = 0.2
    routine_master_url: str | None = None
    routine_cache_ttl_seconds: int = 3600
    provider_timeout_seconds: float = 10
    realtime_enabled: bool = False
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_subject_list(raw: str | None) -> list[str]:
    """Parse a comma-separated subject list, keeping first-seen order."""
    if raw is None:
        return []
    names: list[str] = []
    for chunk in raw.split(","):
        value = chunk.strip()
        if value and value not in names:
            names.append(value)
    return names
