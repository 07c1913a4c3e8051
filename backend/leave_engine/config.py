from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    ``entitlement_overrides`` maps a leave type id to a fixed yearly entitlement.
    An override on annual leave also drops its tenure tiers, so every employee
    gets exactly the configured number of days.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Leave Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://leave_engine:leave_engine@db:5432/leave_engine"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"

    # Leave rules
    exclude_holidays: bool = True
    certificate_enforcement: Literal["block", "flag"] = "block"
    sick_certificate_threshold_days: float = Field(default=3, ge=0)
    annual_max_carry_over_days: float = Field(default=6, ge=0)
    entitlement_overrides: dict[str, float] = {}

    # Optimistic concurrency
    balance_conflict_retries: int = Field(default=3, ge=1, le=10)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
