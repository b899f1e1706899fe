"""
Per-tenant entry point to the record system.

Configuration is looked up on every call, so a tenant switching between the
simulation and a real RMS (or rotating credentials) takes effect immediately.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, List, Optional

from stocksync.integrations.record_system.base import InventoryItem, RecordSystemAdapter, RecordSystemConfig
from stocksync.integrations.record_system.connections import ConnectionRegistry
from stocksync.integrations.record_system.live import LiveRecordSystem
from stocksync.integrations.record_system.simulation import SimulationRecordSystem

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[int], Awaitable[RecordSystemConfig]]


class RecordSystemClient(RecordSystemAdapter):
    def __init__(
        self,
        tenant_id: int,
        config_loader: ConfigLoader,
        connections: ConnectionRegistry,
        simulation: Optional[SimulationRecordSystem] = None,
    ):
        self.tenant_id = tenant_id
        self.config_loader = config_loader
        self.connections = connections
        self.simulation = simulation or SimulationRecordSystem()

    async def _backend(self) -> Optional[RecordSystemAdapter]:
        config = await self.config_loader(self.tenant_id)
        if config.is_simulation:
            return self.simulation
        if not config.is_configured:
            logger.warning(f"Record system not configured for tenant {self.tenant_id}")
            return None
        return LiveRecordSystem(self.tenant_id, config, self.connections)

    async def get_items_updated_since(self, since: datetime) -> List[InventoryItem]:
        backend = await self._backend()
        return await backend.get_items_updated_since(since) if backend else []

    async def get_variants_by_style(self, style_id: str) -> List[InventoryItem]:
        backend = await self._backend()
        return await backend.get_variants_by_style(style_id) if backend else []

    async def get_item_by_sku(self, sku: str) -> Optional[InventoryItem]:
        backend = await self._backend()
        return await backend.get_item_by_sku(sku) if backend else None

    async def update_item_stock(self, sku: str, quantity: int) -> bool:
        backend = await self._backend()
        return await backend.update_item_stock(sku, quantity) if backend else False

    async def decrement_item_stock(self, sku: str, quantity: int = 1) -> bool:
        backend = await self._backend()
        return await backend.decrement_item_stock(sku, quantity) if backend else False
