"""
In-memory stand-in for the record system.

Used when a tenant's RMS host is the "simulation" sentinel, and by the tests.
Every mutation happens without an await between read and write, so on a
single event loop the atomic decrement really is atomic.
"""

import asyncio
import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Iterable

from stocksync.core.utils import utc_now, as_utc
from stocksync.integrations.record_system.base import InventoryItem, RecordSystemAdapter

logger = logging.getLogger(__name__)


def default_inventory() -> List[dict]:
    now = utc_now()
    return [
        # NorCal OG Hoodie (Black) - Style: NCHOGBLK
        {"sku": "NCHOGBLKS", "style_id": "NCHOGBLK", "quantity": 10, "description": "NorCal OG Hoodie Black (Small)", "price": 54.95, "last_updated": now},
        {"sku": "NCHOGBLKM", "style_id": "NCHOGBLK", "quantity": 15, "description": "NorCal OG Hoodie Black (Medium)", "price": 54.95, "last_updated": now},
        {"sku": "NCHOGBLKL", "style_id": "NCHOGBLK", "quantity": 8, "description": "NorCal OG Hoodie Black (Large)", "price": 54.95, "last_updated": now},
        {"sku": "NCHOGBLKXL", "style_id": "NCHOGBLK", "quantity": 4, "description": "NorCal OG Hoodie Black (XL)", "price": 54.95, "last_updated": now},
        # NorCal OG Hoodie (Grey) - Style: NCHOGGRY
        {"sku": "NCHOGGRYS", "style_id": "NCHOGGRY", "quantity": 5, "description": "NorCal OG Hoodie Grey (Small)", "price": 54.95, "last_updated": now},
        {"sku": "NCHOGGRYM", "style_id": "NCHOGGRY", "quantity": 20, "description": "NorCal OG Hoodie Grey (Medium)", "price": 54.95, "last_updated": now},
        # Test T-Shirt
        {"sku": "NCTEEBLKM", "style_id": "NCTEEBLK", "quantity": 100, "description": "NorCal Classic Tee Black (M)", "price": 25.00, "last_updated": now},
    ]


class SimulationRecordSystem(RecordSystemAdapter):
    def __init__(
        self,
        items: Optional[Iterable[dict]] = None,
        simulate_activity: bool = False,
        latency: float = 0.0,
    ):
        rows = default_inventory() if items is None else items
        self._items: Dict[str, dict] = {}
        for row in rows:
            row = dict(row)
            row["last_updated"] = as_utc(row.get("last_updated")) or utc_now()
            self._items[row["sku"]] = row
        self.simulate_activity = simulate_activity
        self.latency = latency

    async def _io(self):
        # Mimic a network round-trip so concurrent callers can interleave
        if self.latency:
            await asyncio.sleep(self.latency)

    @staticmethod
    def _to_item(row: dict) -> InventoryItem:
        return InventoryItem(**row)

    def _touch(self, row: dict):
        # Keep timestamps strictly increasing so a watermark never hides a change
        now = utc_now()
        if now <= row["last_updated"]:
            now = row["last_updated"] + timedelta(microseconds=1)
        row["last_updated"] = now

    def _simulate_sale(self):
        row = random.choice(list(self._items.values()))
        row["quantity"] = max(0, row["quantity"] - 1)
        self._touch(row)
        logger.info(f"[SIMULATION] Variant {row['sku']} updated (Qty: {row['quantity']}).")

    async def get_items_updated_since(self, since: datetime) -> List[InventoryItem]:
        await self._io()
        if self.simulate_activity and self._items:
            self._simulate_sale()
        since = as_utc(since)
        return [self._to_item(row) for row in self._items.values() if row["last_updated"] > since]

    async def get_variants_by_style(self, style_id: str) -> List[InventoryItem]:
        await self._io()
        return [
            self._to_item(row) for row in self._items.values()
            if row.get("style_id") == style_id or row["sku"] == style_id
        ]

    async def get_item_by_sku(self, sku: str) -> Optional[InventoryItem]:
        await self._io()
        row = self._items.get(sku)
        return self._to_item(row) if row else None

    async def update_item_stock(self, sku: str, quantity: int) -> bool:
        await self._io()
        row = self._items.get(sku)
        if row is None:
            return False
        row["quantity"] = int(quantity)
        self._touch(row)
        logger.info(f"[SIMULATION] Updated {sku} quantity to {quantity}")
        return True

    async def decrement_item_stock(self, sku: str, quantity: int = 1) -> bool:
        await self._io()
        row = self._items.get(sku)
        if row is None:
            logger.warning(f"[SIMULATION] Decrement skipped: SKU {sku} not found")
            return False
        if row["quantity"] < quantity:
            logger.warning(f"[SIMULATION] Decrement skipped: {sku} has {row['quantity']}, need {quantity}")
            return False
        row["quantity"] -= quantity
        self._touch(row)
        logger.info(f"[SIMULATION] Decremented {sku} by {quantity}")
        return True
