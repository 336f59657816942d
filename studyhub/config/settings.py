"""
Application Configuration

This module provides type-safe configuration loading using Pydantic settings.
Environment variables are loaded from .env file and validated.

Usage:
    from studyhub.config import settings

    # Access settings
    db_url = settings.DATABASE_URL_ASYNC
    window = settings.RECOMMENDATION_LOG_WINDOW
"""

from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings

from studyhub.enums.api import RateLimitType


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Study Hub"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: list[str] = ["*"]

    # PostgreSQL
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "studyhub"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "studyhub"

    # Full SQLAlchemy URL; overrides the POSTGRES_* fields when set
    # (e.g. "sqlite+aiosqlite:///./studyhub.db" for local runs and tests).
    DATABASE_URL: str = ""

    @property
    def POSTGRES_URL(self) -> str:
        """Async PostgreSQL connection URL."""
        return f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def DATABASE_URL_ASYNC(self) -> str:
        """URL the async engine connects to."""
        return self.DATABASE_URL or self.POSTGRES_URL

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: str = "100/minute"
    RATE_LIMIT_WRITE: str = "60/minute"
    RATE_LIMIT_ANALYTICS: str = "30/minute"

    def get_rate_limit(self, rate_limit_type: RateLimitType) -> str:
        """Resolve the limit string for an endpoint category."""
        limits = {
            RateLimitType.DEFAULT: self.RATE_LIMIT_DEFAULT,
            RateLimitType.WRITE: self.RATE_LIMIT_WRITE,
            RateLimitType.ANALYTICS: self.RATE_LIMIT_ANALYTICS,
        }
        return limits.get(rate_limit_type, self.RATE_LIMIT_DEFAULT)

    # Recommendation generation
    RECOMMENDATION_LOG_WINDOW: int = 50  # Most recent logs considered per run
    RECOMMENDATION_RESPONSE_LIMIT: int = 5  # Rows returned by GET /recommendations
    NEXT_ACTIVITY_MAX_RESULTS: int = 3
    NEXT_ACTIVITY_MIN_SCORE: float = 0.2  # Strictly greater than
    SIMILAR_CONTENT_MAX_RESULTS: int = 3
    SIMILAR_CONTENT_MIN_SCORE: float = 0.5  # Strictly greater than

    # Analytics
    PATTERN_MIN_LOGS: int = 5
    LEARNING_PATH_MAX_STEPS: int = 10
    ACTIVITY_TREND_DAYS: int = 7

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()


@lru_cache()
def load_yaml_config() -> dict[str, Any]:
    """Load application configuration from config/default.yaml."""
    config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        return {}

    with open(config_path) as f:
        return yaml.safe_load(f) or {}


yaml_config: dict[str, Any] = load_yaml_config()
