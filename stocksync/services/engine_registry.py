# stocksync/services/engine_registry.py
"""
Builds and holds one SyncEngine and one WebhookIngestor per tenant.

The registry is created once at application start-up and stored on
`app.state`; the scheduler and the routes both go through it so they share
watermarks, run-locks and record system connections.
"""

import logging
from datetime import timedelta
from typing import Dict

from sqlalchemy.ext.asyncio import async_sessionmaker

from stocksync.core.config import Settings
from stocksync.core.enums import WebhookDeliveryMode
from stocksync.integrations.record_system.client import RecordSystemClient
from stocksync.integrations.record_system.connections import ConnectionRegistry
from stocksync.integrations.record_system.simulation import SimulationRecordSystem
from stocksync.services.catalog_store import SqlCatalogStore
from stocksync.services.style_resolver import default_strategy
from stocksync.services.sync_engine import SyncEngine
from stocksync.services.tenant_settings import TenantSettingsStore
from stocksync.services.webhook_ingestor import WebhookIngestor

logger = logging.getLogger(__name__)


class EngineRegistry:
    def __init__(self, settings: Settings, session_factory: async_sessionmaker):
        self.settings = settings
        self.session_factory = session_factory
        self.connections = ConnectionRegistry(pool_pre_ping=True)
        self.tenant_settings = TenantSettingsStore(session_factory, settings)
        self.catalog = SqlCatalogStore(session_factory)
        self._clients: Dict[int, RecordSystemClient] = {}
        self._engines: Dict[int, SyncEngine] = {}
        self._ingestors: Dict[int, WebhookIngestor] = {}
        self.scheduler = None  # set by the app lifespan

    @property
    def tenant_ids(self):
        return list(self.settings.SYNC_TENANT_IDS)

    def client_for(self, tenant_id: int) -> RecordSystemClient:
        client = self._clients.get(tenant_id)
        if client is None:
            client = RecordSystemClient(
                tenant_id,
                self.tenant_settings.get_record_system_config,
                self.connections,
                simulation=SimulationRecordSystem(simulate_activity=self.settings.RMS_SIMULATE_ACTIVITY),
            )
            self._clients[tenant_id] = client
        return client

    def engine_for(self, tenant_id: int) -> SyncEngine:
        engine = self._engines.get(tenant_id)
        if engine is None:
            engine = SyncEngine(
                tenant_id,
                self.client_for(tenant_id),
                self.catalog,
                strategy=default_strategy,
                grace_window=timedelta(minutes=self.settings.STARTUP_GRACE_MINUTES),
                placeholder_image_url=self.settings.PLACEHOLDER_IMAGE_URL,
            )
            self._engines[tenant_id] = engine
            logger.info(f"Sync engine created for tenant {tenant_id} (watermark {engine.watermark.isoformat()})")
        return engine

    def ingestor_for(self, tenant_id: int) -> WebhookIngestor:
        ingestor = self._ingestors.get(tenant_id)
        if ingestor is None:
            ingestor = WebhookIngestor(
                tenant_id,
                self.client_for(tenant_id),
                mode=self.delivery_mode,
                session_factory=self.session_factory,
                max_attempts=self.settings.DECREMENT_MAX_ATTEMPTS,
                retry_base_seconds=self.settings.DECREMENT_RETRY_BASE_SECONDS,
            )
            self._ingestors[tenant_id] = ingestor
        return ingestor

    @property
    def delivery_mode(self) -> WebhookDeliveryMode:
        try:
            return WebhookDeliveryMode(self.settings.WEBHOOK_DELIVERY_MODE.lower())
        except ValueError:
            logger.warning(f"Unknown WEBHOOK_DELIVERY_MODE '{self.settings.WEBHOOK_DELIVERY_MODE}', using ack")
            return WebhookDeliveryMode.ACK

    async def close(self):
        await self.connections.dispose_all()
