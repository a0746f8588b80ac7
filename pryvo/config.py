"""Configuration management for the Pryvo backend."""

from typing import Any

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application Configuration
    APP_NAME: str = "Pryvo API"
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"
    DEBUG: bool = Field(default=False)

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Database Configuration
    DATABASE_URL: str = "sqlite+aiosqlite:///./pryvo.db"

    # Redis Configuration
    REDIS_URL: str | None = None
    PROFILE_CACHE_TTL_SECONDS: int = 300

    # Sentry Configuration
    SENTRY_DSN: str | None = None

    # Swipe quotas
    FREE_DAILY_LIKE_LIMIT: int = 10
    PREMIUM_DAILY_LIKE_LIMIT: int = 500
    UNDO_WINDOW_SECONDS: int = 300
    SHOW_LIKER_IDENTITY: bool = False

    # Boosts
    DEFAULT_BOOST_MINUTES: int = 30
    BOOST_SWEEP_INTERVAL_SECONDS: int = 60

    # Profile comments
    FREE_DAILY_COMMENT_LIMIT: int = 10
    PREMIUM_DAILY_COMMENT_LIMIT: int = 100
    COMMENT_TTL_DAYS: int = 7
    MAX_COMMENT_LENGTH: int = 500

    # Push gateway
    PUSH_GATEWAY_URL: str | None = None
    PUSH_GATEWAY_TOKEN: str | None = None
    PUSH_TIMEOUT_SECONDS: float = 15.0

    # Discovery
    DISCOVERY_YIELD_EVERY: int = 200

    @field_validator("DEBUG", mode="before")
    @classmethod
    def set_debug(cls, v: Any, info: ValidationInfo) -> bool:
        """Enable debug mode if ENVIRONMENT is development."""
        if isinstance(v, bool):
            return v
        if isinstance(v, str) and v:
            return v.lower() in ("1", "true", "yes")
        return bool(info.data.get("ENVIRONMENT", "").lower() == "development")

    @field_validator("DATABASE_URL")
    @classmethod
    def normalize_database_url(cls, v: str) -> str:
        """Point plain postgres URLs at the asyncpg driver."""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql+asyncpg://", 1)
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", case_sensitive=True, extra="ignore")


# Create a global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Return the settings instance."""
    return settings
