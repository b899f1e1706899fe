"""
Schemas for catalog styles.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from stocksync.core.enums import StyleStatus


class StyleCreate(BaseModel):
    tenant_id: int
    sku: str
    name: str
    description: Optional[str] = None
    price: Optional[str] = None
    variants: List[dict] = Field(default_factory=list)
    status: StyleStatus = StyleStatus.DRAFT
    image_url: Optional[str] = None
    last_synced_at: Optional[datetime] = None


class StyleRead(BaseModel):
    """A stored style as the API returns it; built straight from the ORM row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    tenant_id: int
    sku: str
    name: str
    description: Optional[str] = None
    price: Optional[str] = None
    variants: List[dict]
    status: StyleStatus
    image_url: Optional[str] = None
    remote_id: Optional[str] = None
    total_quantity: int
    last_synced_at: Optional[datetime] = None
