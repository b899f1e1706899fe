"""
Tenant-keyed cache of SQLAlchemy engines for live record systems.

Each tenant gets its own engine, rebuilt whenever that tenant's connection
settings change. Engine creation is not locked: two concurrent first calls
may both build an engine, in which case the loser is disposed.
"""

import logging
from typing import Dict, Tuple

from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from stocksync.core.exceptions import RecordSystemConnectionError
from stocksync.integrations.record_system.base import RecordSystemConfig

logger = logging.getLogger(__name__)


def build_record_system_url(config: RecordSystemConfig):
    if config.url:
        return make_url(config.url)
    if not config.host:
        raise RecordSystemConnectionError("Record system host is not configured")

    query = {}
    if config.driver.startswith("mssql"):
        query = {
            "driver": config.odbc_driver,
            "Encrypt": "no",
            "TrustServerCertificate": "yes",
        }
    return URL.create(
        config.driver,
        username=config.user,
        password=config.password,
        host=config.host,
        database=config.database,
        query=query,
    )


class ConnectionRegistry:
    def __init__(self, **engine_options):
        self._engines: Dict[int, Tuple[tuple, AsyncEngine]] = {}
        self._engine_options = engine_options

    def __contains__(self, tenant_id: int) -> bool:
        return tenant_id in self._engines

    def _create_engine(self, config: RecordSystemConfig) -> AsyncEngine:
        try:
            url = build_record_system_url(config)
            options = dict(self._engine_options)
            if url.drivername.startswith("sqlite"):
                options.pop("pool_size", None)
                options.pop("max_overflow", None)
            return create_async_engine(url, **options)
        except RecordSystemConnectionError:
            raise
        except Exception as e:
            raise RecordSystemConnectionError(f"Could not create record system engine: {e}") from e

    async def get_engine(self, tenant_id: int, config: RecordSystemConfig) -> AsyncEngine:
        """Return the tenant's engine, rebuilding it if the settings changed."""
        fingerprint = config.fingerprint()
        cached = self._engines.get(tenant_id)
        if cached and cached[0] == fingerprint:
            return cached[1]

        engine = self._create_engine(config)

        # Another caller may have won the race while we were building ours
        current = self._engines.get(tenant_id)
        if current and current[0] == fingerprint:
            await engine.dispose()
            return current[1]

        self._engines[tenant_id] = (fingerprint, engine)
        if current:
            logger.info(f"Record system settings changed for tenant {tenant_id}; replacing engine")
            await current[1].dispose()
        else:
            logger.info(f"Created record system engine for tenant {tenant_id}")
        return engine

    async def discard(self, tenant_id: int):
        """Drop a tenant's engine so the next call reconnects from scratch."""
        cached = self._engines.pop(tenant_id, None)
        if cached:
            try:
                await cached[1].dispose()
            except Exception as e:
                logger.warning(f"Error disposing engine for tenant {tenant_id}: {e}")

    async def dispose_all(self):
        for tenant_id in list(self._engines):
            await self.discard(tenant_id)
