"""Configuration management for the champion reviews backend.

Loads settings from .env file with Pydantic validation. DATABASE_URL selects the
SQLAlchemy backend (SQLite for tests and local dev, Postgres in production).
"""
import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


DEFAULT_SECRET_KEY = "dev-secret-key-change-in-production"


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates and provides defaults for all configuration values.
    """
    model_config = SettingsConfigDict(env_file=os.getenv("ENV_FILE", ".env"), case_sensitive=True, extra="ignore")

    # Database (any SQLAlchemy URL)
    DATABASE_URL: str = "sqlite:///./champion_reviews.db"

    # CORS - strict allowlist for security
    FRONTEND_URL: str = "https://localhost:5173"
    PRODUCTION_URL: str = ""

    # Test mode accepts dev-token-<user_id> bearer tokens
    TEST_MODE: bool = False

    # JWT signing
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    LOG_LEVEL: str = "INFO"


@lru_cache()
def get_settings(env_file: str = ".env") -> Settings:
    """Get cached settings instance.

    Uses LRU cache to avoid re-parsing .env on every import.
    Allows env_file override for testing with isolated configurations.
    """
    return Settings(_env_file=env_file)


def load_settings_from_env() -> Settings:
    """Build a fresh, uncached settings instance.

    Used where tests patch the environment after import (startup security checks).
    """
    return Settings(_env_file=os.getenv("ENV_FILE", ".env"))


# Default settings instance (respects ENV_FILE when set)
settings = get_settings(os.getenv("ENV_FILE", ".env"))
