# storesync/core/config.py

import os
from functools import lru_cache

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./storesync.db"
    AUTO_CREATE_TABLES: bool = False

    # Shopify Admin REST API
    SHOPIFY_API_VERSION: str = "2024-01"
    SHOPIFY_PAGE_SIZE: int = 250  # Shopify's maximum page size
    SHOPIFY_REQUEST_TIMEOUT: float = 30.0

    # Webhooks
    # Tenants without a webhook secret are only accepted when an operator
    # explicitly opts in; every such delivery is logged as unverified.
    ALLOW_UNVERIFIED_WEBHOOKS: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore",
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()


def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
