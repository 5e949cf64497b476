"""Application configuration via Pydantic BaseSettings."""

from __future__ import annotations

from enum import Enum
from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    development = "development"
    test = "test"
    staging = "staging"
    production = "production"


class Settings(BaseSettings):
    """Settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database
    DATABASE_URL: str = "sqlite:///./crm_sync.db"

    # Environment
    ENVIRONMENT: Environment = Environment.development

    # Logging
    LOG_LEVEL: str = "INFO"

    # Remote CRM credentials (PIPEDRIVE_* names accepted for existing deployments)
    API_TOKEN: str = Field(
        default="",
        validation_alias=AliasChoices("API_TOKEN", "PIPEDRIVE_API_TOKEN"),
    )
    COMPANY_DOMAIN: str = Field(
        default="",
        validation_alias=AliasChoices("COMPANY_DOMAIN", "PIPEDRIVE_COMPANY_DOMAIN"),
    )

    # Remote API behaviour
    PAGE_SIZE: int = 100
    HTTP_TIMEOUT: float = 30.0
    HTTP_MAX_ATTEMPTS: int = 3
    REMOTE_LOOKUP_ON_MISS: bool = True

    # Reconciliation defaults
    DEFAULT_USER_EMAIL: str = "admin@example.com"
    ACCOUNT_PHONE_PLACEHOLDER: str = "000-000-0000"

    def is_test(self) -> bool:
        return self.ENVIRONMENT == Environment.test


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
