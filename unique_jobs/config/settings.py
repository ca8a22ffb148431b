# unique_jobs/config/settings.py

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

NO_WAIT = -1.0


class UniqueJobsSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="UNIQUE_JOBS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Redis ---
    redis_url: str = "redis://localhost:6379/0"

    # --- Lock defaults ---
    lock_ttl: int = Field(default=0, ge=0)  # seconds, 0 = never expires
    lock_timeout: float | None = None  # seconds; None/0 = wait forever, NO_WAIT (negative) = single attempt
    lock_limit: int = Field(default=1, ge=1)
    lock_retry_count: int = Field(default=3, ge=0)
    lock_retry_delay: int = Field(default=200, ge=0)  # ms
    lock_retry_jitter: int = Field(default=50, ge=0)  # ms
    on_conflict: str = "drop"

    # --- Changelog ---
    changelog_max_entries: int = Field(default=1000, ge=1)

    # --- Observability ---
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


@lru_cache
def get_settings() -> UniqueJobsSettings:
    return UniqueJobsSettings()
