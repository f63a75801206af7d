from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Vacation Engine"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: Literal["development", "staging", "production"] = "development"
    database_url: str = "postgresql+asyncpg://vacation:vacation@db:5432/vacation"
    cors_origins: list[str] = ["http://localhost:5173", "http://localhost:8000"]
    log_level: str = "INFO"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Balance and audit tolerances (days).
    balance_tolerance: float = 0.01
    audit_drift_error_days: float = 1.0

    # Accrual staleness thresholds (days since last accrual).
    stale_accrual_days: int = 2
    severely_stale_accrual_days: int = 7

    approval_sla_hours: int = 48
    worker_interval_seconds: int = 86400


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
