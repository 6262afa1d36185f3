"""
Application Configuration

Centralized configuration management using Pydantic settings.
Loads from environment variables with fallback to .env file.
"""
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Note: get_settings() is cached, so tests that change the environment
    need to call get_settings.cache_clear().
    """

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True)

    # Database settings
    DATABASE_URL: str = "postgresql://localhost/assets_dev"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 40

    # Session tokens are issued by the identity provider and signed with
    # a shared secret. We only verify them.
    AUTH_SECRET_KEY: str = "dev-secret-key-change-in-production"
    AUTH_ALGORITHM: str = "HS256"
    AUTH_ISSUER: str = ""
    AUTH_COMPANY_CLAIM: str = "company_id"

    # Redis for the entity list cache. Empty string disables caching.
    REDIS_URL: str = "redis://localhost:6379/0"
    CACHE_TTL_SECONDS: int = 300

    # CO2 footprint estimation
    CO2_CACHE_TTL_SECONDS: int = 3600
    CO2_ESTIMATOR_URL: str = ""
    CO2_ESTIMATOR_TOKEN: str = ""
    CO2_ESTIMATOR_TIMEOUT: int = 20

    # Bulk import
    IMPORT_MAX_ROWS: int = 5000

    # Application settings
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
