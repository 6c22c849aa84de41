# cellblock/config/settings.py
from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Logging levels."""
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class LogFormat(str, Enum):
    JSON = "json"
    TEXT = "text"


class Settings(BaseSettings):
    """Runtime configuration, read from the environment and `.env`."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    ENVIRONMENT: Environment = Field(default=Environment.DEVELOPMENT)

    # Database
    DATABASE_URL: str = Field(default="sqlite:///./cellblock.db")
    DATABASE_ECHO: bool = Field(default=False)

    # Logging
    LOG_LEVEL: LogLevel = Field(default=LogLevel.INFO)
    LOG_FORMAT: LogFormat = Field(default=LogFormat.JSON)
    LOG_FILE: str | None = Field(default=None)
    LOG_SQL_QUERIES: bool = Field(default=False)

    # Operations
    OPERATION_TIMEOUT_SECONDS: float = Field(default=30.0, gt=0)
    STATS_CACHE_TTL_SECONDS: float = Field(default=300.0, ge=0)
    BACKGROUND_MAX_WORKERS: int = Field(default=4, ge=1, le=64)
    NEAR_CAPACITY_THRESHOLD: float = Field(default=90.0, ge=0, le=100)

    # Health checks
    HEALTH_CHECK_RETRIES: int = Field(default=3, ge=1)
    HEALTH_CHECK_DELAY_SECONDS: float = Field(default=1.0, ge=0)

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value

    def is_development(self) -> bool:
        return self.ENVIRONMENT == Environment.DEVELOPMENT

    def is_sqlite(self) -> bool:
        return self.DATABASE_URL.startswith("sqlite")


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
