"""Application configuration using pydantic-settings."""
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DAY_IN_SECONDS = 86_400


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Database
    database_url: str = Field(
        default="postgresql+asyncpg://localhost:5432/hidden_profiles",
        validation_alias="DATABASE_URL",
    )
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Redis - shared cache for the hidden user set
    redis_url: str = Field(default="redis://localhost:6379", validation_alias="REDIS_URL")
    redis_enabled: bool = Field(default=True, validation_alias="REDIS_ENABLED")
    redis_pool_size: int = Field(default=20, validation_alias="REDIS_POOL_SIZE")

    # Hidden set is invalidated on every user change; the TTL only bounds staleness
    # when an invalidation is missed (e.g. a direct database edit).
    hidden_set_cache_ttl: int = Field(
        default=DAY_IN_SECONDS, ge=1, validation_alias="HIDDEN_SET_CACHE_TTL",
    )

    # Anti-forgery tokens for the admin visibility control
    csrf_secret: str = Field(
        default="change-me-in-production", validation_alias="CSRF_SECRET",
    )
    csrf_token_ttl: int = Field(
        default=DAY_IN_SECONDS, ge=1, validation_alias="CSRF_TOKEN_TTL",
    )

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the log level and reject unknown names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
