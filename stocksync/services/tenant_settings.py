# stocksync/services/tenant_settings.py
import logging
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from stocksync.core.config import Settings, get_settings
from stocksync.integrations.record_system.base import RecordSystemConfig
from stocksync.models.tenant_setting import TenantSetting

logger = logging.getLogger(__name__)


class TenantSettingsStore:
    """
    Reads per-tenant overrides and resolves them against process-wide defaults.

    Nothing is cached: every call sees the latest stored values.
    """

    def __init__(self, session_factory: async_sessionmaker, settings: Optional[Settings] = None):
        self.session_factory = session_factory
        self.settings = settings or get_settings()

    async def get_values(self, tenant_id: int) -> Dict[str, str]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(TenantSetting.key_name, TenantSetting.key_value)
                .where(TenantSetting.tenant_id == tenant_id)
            )
            return {key: value for key, value in result.all()}

    async def set_value(self, tenant_id: int, key_name: str, key_value: str):
        async with self.session_factory() as session:
            existing = await session.scalar(
                select(TenantSetting).where(
                    TenantSetting.tenant_id == tenant_id,
                    TenantSetting.key_name == key_name,
                )
            )
            if existing:
                existing.key_value = key_value
            else:
                session.add(TenantSetting(tenant_id=tenant_id, key_name=key_name, key_value=key_value))
            await session.commit()

    async def get_record_system_config(self, tenant_id: int) -> RecordSystemConfig:
        try:
            values = await self.get_values(tenant_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load settings for tenant {tenant_id}, using defaults: {e}")
            values = {}
        return resolve_record_system_config(values, self.settings)


def resolve_record_system_config(values: Dict[str, str], settings: Settings) -> RecordSystemConfig:
    """Tenant value wins per key; an empty stored value falls back to the default."""

    def pick(key: str):
        return values.get(key) or getattr(settings, key)

    return RecordSystemConfig(
        host=pick("RMS_HOST"),
        user=pick("RMS_USER"),
        password=pick("RMS_PASSWORD"),
        database=pick("RMS_DATABASE"),
        driver=pick("RMS_DRIVER"),
        odbc_driver=settings.RMS_ODBC_DRIVER,
        url=pick("RMS_URL"),
    )
