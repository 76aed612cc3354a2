"""Application settings loaded from environment variables via pydantic-settings."""

from enum import StrEnum
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageBackend(StrEnum):
    memory = "memory"
    file = "file"
    redis = "redis"


class LogFormat(StrEnum):
    json = "json"
    console = "console"


class Settings(BaseSettings):
    """Central configuration — all values sourced from env vars or .env file."""

    model_config = SettingsConfigDict(
        env_prefix="botanica_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Storage ─────────────────────────────────────────────────────────────
    storage_backend: StorageBackend = StorageBackend.file
    storage_key: str = "botanica_pro_plants"
    storage_dir: Path = Path("data")
    storage_quota_bytes: int = 5 * 1024 * 1024

    # ── Redis ───────────────────────────────────────────────────────────────
    redis_url: str = "redis://localhost:6379/0"

    # ── Analysis model ──────────────────────────────────────────────────────
    gemini_api_key: str = Field(
        default="",
        validation_alias=AliasChoices(
            "botanica_gemini_api_key",
            "gemini_api_key",
            "api_key",
        ),
    )
    gemini_model: str = "gemini-3-flash-preview"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_timeout_seconds: float = 60.0

    # ── Image capture ───────────────────────────────────────────────────────
    image_max_edge: int = 1024
    image_quality: int = 70
    max_images_per_plant: int = 3

    # ── Display ─────────────────────────────────────────────────────────────
    display_timezone: str = "UTC"

    # ── Server ──────────────────────────────────────────────────────────────
    host: str = "0.0.0.0"
    port: int = 8000

    # ── Observability ───────────────────────────────────────────────────────
    log_level: str = "info"
    log_format: LogFormat = LogFormat.json


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance (cached after first call)."""
    return Settings()
