"""
Live record system backend.

Talks to the RMS `Item` table through a SQLAlchemy async engine taken from the
tenant's entry in the ConnectionRegistry. Record system timestamps are naive
UTC DATETIME values.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Column, DateTime, Float, MetaData, String, Table, or_, select, update
from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError, SQLAlchemyError

from stocksync.core.exceptions import RecordSystemConnectionError
from stocksync.core.utils import as_utc, to_naive_utc, utc_now
from stocksync.integrations.record_system.base import InventoryItem, RecordSystemAdapter, RecordSystemConfig
from stocksync.integrations.record_system.connections import ConnectionRegistry

logger = logging.getLogger(__name__)

rms_metadata = MetaData()

item_table = Table(
    "Item",
    rms_metadata,
    Column("ItemLookupCode", String(25), primary_key=True),
    Column("StyleID", String(25), nullable=True),
    Column("Description", String(255), nullable=True),
    Column("Quantity", Float, nullable=False, default=0),
    Column("Price", Float, nullable=True),
    Column("LastUpdated", DateTime, nullable=True),
)

_ITEM_COLUMNS = (
    item_table.c.ItemLookupCode,
    item_table.c.StyleID,
    item_table.c.Description,
    item_table.c.Quantity,
    item_table.c.Price,
    item_table.c.LastUpdated,
)


def row_to_item(row) -> InventoryItem:
    return InventoryItem(
        sku=row.ItemLookupCode,
        style_id=row.StyleID or None,
        description=row.Description or "",
        quantity=int(row.Quantity or 0),
        price=float(row.Price or 0),
        last_updated=as_utc(row.LastUpdated),
    )


def _is_connection_failure(exc: Exception) -> bool:
    if isinstance(exc, (RecordSystemConnectionError, OperationalError, InterfaceError, OSError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


class LiveRecordSystem(RecordSystemAdapter):
    def __init__(self, tenant_id: int, config: RecordSystemConfig, connections: ConnectionRegistry):
        self.tenant_id = tenant_id
        self.config = config
        self.connections = connections

    async def _handle_failure(self, operation: str, exc: Exception):
        if _is_connection_failure(exc):
            logger.error(f"RMS {operation} connection error (tenant {self.tenant_id}): {exc}")
            await self.connections.discard(self.tenant_id)
        else:
            logger.error(f"RMS {operation} error (tenant {self.tenant_id}): {exc}")

    async def _fetch_all(self, operation: str, stmt) -> List[InventoryItem]:
        try:
            engine = await self.connections.get_engine(self.tenant_id, self.config)
            async with engine.connect() as conn:
                result = await conn.execute(stmt)
                return [row_to_item(row) for row in result]
        except (SQLAlchemyError, RecordSystemConnectionError, OSError) as e:
            await self._handle_failure(operation, e)
            return []

    async def _write(self, operation: str, stmt) -> bool:
        try:
            engine = await self.connections.get_engine(self.tenant_id, self.config)
            async with engine.begin() as conn:
                result = await conn.execute(stmt)
                return result.rowcount > 0
        except (SQLAlchemyError, RecordSystemConnectionError, OSError) as e:
            await self._handle_failure(operation, e)
            return False

    async def get_items_updated_since(self, since: datetime) -> List[InventoryItem]:
        stmt = select(*_ITEM_COLUMNS).where(item_table.c.LastUpdated > to_naive_utc(since))
        return await self._fetch_all("getItemsUpdatedSince", stmt)

    async def get_variants_by_style(self, style_id: str) -> List[InventoryItem]:
        stmt = (
            select(*_ITEM_COLUMNS)
            .where(or_(item_table.c.StyleID == style_id, item_table.c.ItemLookupCode == style_id))
            .order_by(item_table.c.ItemLookupCode)
        )
        return await self._fetch_all("getVariantsByStyle", stmt)

    async def get_item_by_sku(self, sku: str) -> Optional[InventoryItem]:
        stmt = select(*_ITEM_COLUMNS).where(item_table.c.ItemLookupCode == sku)
        items = await self._fetch_all("getItemBySku", stmt)
        return items[0] if items else None

    async def update_item_stock(self, sku: str, quantity: int) -> bool:
        stmt = (
            update(item_table)
            .where(item_table.c.ItemLookupCode == sku)
            .values(Quantity=quantity, LastUpdated=to_naive_utc(utc_now()))
        )
        updated = await self._write("updateItemStock", stmt)
        if updated:
            logger.info(f"RMS updated sku={sku} to qty={quantity}")
        return updated

    async def decrement_item_stock(self, sku: str, quantity: int = 1) -> bool:
        # Single conditional UPDATE: no window for a concurrent writer to slip in
        stmt = (
            update(item_table)
            .where(item_table.c.ItemLookupCode == sku, item_table.c.Quantity >= quantity)
            .values(Quantity=item_table.c.Quantity - quantity, LastUpdated=to_naive_utc(utc_now()))
        )
        updated = await self._write("decrementItemStock", stmt)
        if updated:
            logger.info(f"RMS decremented sku={sku} by {quantity}")
        else:
            logger.warning(f"RMS decrement of sku={sku} by {quantity} matched no row (unknown SKU or insufficient stock)")
        return updated
