# stocksync/core/config.py

import os
from functools import lru_cache
from typing import List, Optional, Annotated
from pydantic import ConfigDict, BeforeValidator
from pydantic_settings import BaseSettings, NoDecode


def _parse_id_list(value):
    if value in (None, "", []):
        return []
    if isinstance(value, int):
        return [value]
    if isinstance(value, str):
        return [int(part.strip()) for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        return [int(str(part).strip()) for part in value if str(part).strip()]
    return []


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Catalog database
    DATABASE_URL: str = "sqlite+aiosqlite:///./stocksync.db"

    # Record system (RMS) defaults - tenants may override these in tenant_settings
    RMS_HOST: Optional[str] = None  # "simulation" selects the in-memory backend
    RMS_USER: Optional[str] = None
    RMS_PASSWORD: Optional[str] = None
    RMS_DATABASE: Optional[str] = None
    RMS_DRIVER: str = "mssql+aioodbc"
    RMS_ODBC_DRIVER: str = "ODBC Driver 18 for SQL Server"
    RMS_URL: Optional[str] = None  # Full SQLAlchemy URL, wins over host/user/password
    RMS_SIMULATE_ACTIVITY: bool = False

    # Polling
    SYNC_TENANT_IDS: Annotated[List[int], NoDecode, BeforeValidator(lambda v: _parse_id_list(v))] = [1]
    SYNC_SCHEDULE_ENABLED: bool = True
    POLL_INTERVAL_SECONDS: int = 30
    STARTUP_GRACE_MINUTES: int = 60

    # Catalog defaults for newly imported styles
    PLACEHOLDER_IMAGE_URL: str = "https://via.placeholder.com/400?text=Pending+Photo"

    # Storefront webhooks
    STOREFRONT_WEBHOOK_SECRET: str = ""
    WEBHOOK_DELIVERY_MODE: str = "ack"  # "ack" (fire-and-forget) or "durable"
    DECREMENT_MAX_ATTEMPTS: int = 5
    DECREMENT_RETRY_BASE_SECONDS: int = 30
    DECREMENT_RETRY_INTERVAL_SECONDS: int = 60

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False

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
