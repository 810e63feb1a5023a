"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - Every setting can be overridden from the environment (prefix MEDREMINDER_)
    - get_settings() is cached (lru_cache) — single instance per process
    - schedule_timezone=None means "system local zone", resolved at computation time

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - SQLite default: the reminder store is personal and single-user, works out-of-the-box
    - max_concurrent_operations defaults to 4: matches the fixed worker pool the
      mobile client used for schedule writes
"""

from functools import lru_cache

from dateutil import tz
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_prefix="MEDREMINDER_", case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./medreminder.db"

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres URLs come as postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 5
    database_max_overflow: int = 5
    create_schema_on_startup: bool = True

    # Scheduling
    schedule_timezone: str | None = None
    max_concurrent_operations: int = 4
    snooze_minutes: int = 10
    reschedule_on_startup: bool = True
    auto_advance: bool = True

    @field_validator("schedule_timezone")
    @classmethod
    def check_timezone(cls, v: str | None) -> str | None:
        if v is not None and tz.gettz(v) is None:
            raise ValueError(f"unknown time zone: {v}")
        return v

    @field_validator("max_concurrent_operations", "snooze_minutes")
    @classmethod
    def check_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
