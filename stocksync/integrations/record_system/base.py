from abc import ABC, abstractmethod
from typing import Optional, List
from datetime import datetime
import logging

from pydantic import BaseModel, ConfigDict

from stocksync.core.enums import SIMULATION_HOST

logger = logging.getLogger(__name__)


class InventoryItem(BaseModel):
    """A single variant as the record system reports it. Never persisted by us."""

    model_config = ConfigDict(frozen=True)

    sku: str
    style_id: Optional[str] = None
    description: str = ""
    quantity: int = 0
    price: float = 0.0
    last_updated: Optional[datetime] = None


class RecordSystemConfig(BaseModel):
    """Connection settings for one tenant's record system."""

    model_config = ConfigDict(frozen=True)

    host: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    database: Optional[str] = None
    driver: str = "mssql+aioodbc"
    odbc_driver: str = "ODBC Driver 18 for SQL Server"
    url: Optional[str] = None

    @property
    def is_simulation(self) -> bool:
        return self.host == SIMULATION_HOST

    @property
    def is_configured(self) -> bool:
        return bool(self.url or self.host)

    def fingerprint(self) -> tuple:
        return (self.host, self.user, self.password, self.database, self.driver, self.odbc_driver, self.url)


class RecordSystemAdapter(ABC):
    """
    Contract every record system backend satisfies.

    Implementations never raise out of these methods: failures are logged and
    turned into an empty list, None or False so a batch keeps going.
    """

    @abstractmethod
    async def get_items_updated_since(self, since: datetime) -> List[InventoryItem]:
        """Items whose last_updated is strictly after `since`"""
        pass

    @abstractmethod
    async def get_variants_by_style(self, style_id: str) -> List[InventoryItem]:
        """Full current variant set for a style (explicit StyleID or the SKU itself)"""
        pass

    @abstractmethod
    async def get_item_by_sku(self, sku: str) -> Optional[InventoryItem]:
        pass

    @abstractmethod
    async def update_item_stock(self, sku: str, quantity: int) -> bool:
        """Unconditionally set stock; False if the SKU is unknown"""
        pass

    @abstractmethod
    async def decrement_item_stock(self, sku: str, quantity: int = 1) -> bool:
        """Atomically subtract `quantity` if at least that much is on hand"""
        pass

    async def decrement_by_read_write(self, sku: str, quantity: int = 1) -> bool:
        """
        Read the current quantity, subtract, write it back.

        Two of these running concurrently against the same SKU can lose an
        update. Kept for comparison with the atomic decrement_item_stock.
        """
        item = await self.get_item_by_sku(sku)
        if item is None:
            logger.error(f"RMS decrement failed: SKU {sku} not found")
            return False
        return await self.update_item_stock(sku, item.quantity - quantity)
