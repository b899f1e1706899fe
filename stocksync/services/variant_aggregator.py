"""
Build a style snapshot from the record system's full variant set.

The snapshot always reflects every current variant of the style rather than
an incremental delta, so writing it is idempotent.
"""

import logging
import re
from typing import List, Optional

from pydantic import BaseModel

from stocksync.core.exceptions import StyleNotFoundError
from stocksync.integrations.record_system.base import InventoryItem, RecordSystemAdapter
from stocksync.services.style_resolver import StyleStrategy, default_strategy

logger = logging.getLogger(__name__)

DEFAULT_SIZE = "Standard"
DEFAULT_STYLE_NAME = "Imported Style"

_PARENS = re.compile(r"\((.*?)\)")


class VariantSummary(BaseModel):
    sku: str
    size: str
    qty: int
    price: float


class StyleSnapshot(BaseModel):
    style_id: str
    name: str
    price: float
    variants: List[VariantSummary]

    @property
    def total_quantity(self) -> int:
        return sum(v.qty for v in self.variants)

    def variants_payload(self) -> List[dict]:
        return [v.model_dump() for v in self.variants]


def parse_size(description: Optional[str]) -> str:
    match = _PARENS.search(description or "")
    if match and match.group(1).strip():
        return match.group(1).strip()
    return DEFAULT_SIZE


def derive_name(description: Optional[str]) -> str:
    name = (description or "").split("(")[0].strip()
    return name or DEFAULT_STYLE_NAME


def order_variants(items: List[InventoryItem], strategy: StyleStrategy = default_strategy) -> List[InventoryItem]:
    """Sort by size suffix (S, M, L, ...); unknown sizes go last in their original order."""

    def rank(item: InventoryItem) -> float:
        value = strategy.size_rank(item.sku)
        return float("inf") if value is None else value

    return sorted(items, key=rank)


def build_snapshot(style_id: str, variants: List[InventoryItem], strategy: StyleStrategy = default_strategy) -> StyleSnapshot:
    ordered = order_variants(variants, strategy)
    first = ordered[0]
    return StyleSnapshot(
        style_id=style_id,
        name=derive_name(first.description),
        price=first.price,
        variants=[
            VariantSummary(sku=v.sku, size=parse_size(v.description), qty=v.quantity, price=v.price)
            for v in ordered
        ],
    )


async def aggregate_style(
    adapter: RecordSystemAdapter,
    style_id: str,
    strategy: StyleStrategy = default_strategy,
) -> StyleSnapshot:
    variants = await adapter.get_variants_by_style(style_id)
    if not variants:
        raise StyleNotFoundError(f"No variants found for style {style_id}")
    return build_snapshot(style_id, variants, strategy)
