"""Configuration settings for the application.

This module defines the configuration settings using Pydantic's
SettingsConfigDict to load environment variables from a .env file.
"""

import logging
from functools import lru_cache
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("uvicorn")


class Settings(BaseSettings):
    """Settings class for the application."""

    # ENVIRONMENT CONFIG
    environment: str = "dev"
    testing: bool = bool(0)
    log_level: str = "INFO"

    # API CONFIG
    project_name: str = "User Grid API"
    api_v1_str: str = "/api/v1"
    backend_cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # REMOTE STORE CONFIG
    remote_store_provider: str = "http"
    remote_store_url: str = "http://localhost:3001"
    remote_store_users_path: str = "/api/v1/users"
    remote_store_timeout: float = 10.0  # Transport timeout in seconds

    # VALIDATION POLICY
    name_min_length: int = 3
    name_max_length: int = 50
    age_min: int = 18
    age_max: int = 100
    duplicate_email_check: bool = True

    model_config = SettingsConfigDict(
        env_file=["../.env", ".env"],
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get the settings for the application."""
    logger.info("Loading config settings from the environment...")

    settings = Settings()

    logger.info(
        f"Remote store provider: {settings.remote_store_provider} "
        f"({settings.remote_store_url}{settings.remote_store_users_path})"
    )
    if not settings.duplicate_email_check:
        logger.warning("Duplicate email check is disabled")

    return settings
