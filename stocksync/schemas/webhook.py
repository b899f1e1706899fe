"""
Storefront (WooCommerce) webhook payloads.

Only the fields the ingestor needs are declared; everything else the
storefront sends is ignored.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, field_validator


class OrderLineItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sku: Optional[str] = None
    quantity: int = 1

    @field_validator("sku", mode="before")
    @classmethod
    def blank_sku_is_missing(cls, v):
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("quantity", mode="before")
    @classmethod
    def default_quantity(cls, v):
        return 1 if v in (None, "") else v

