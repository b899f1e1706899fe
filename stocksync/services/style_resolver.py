# stocksync/services/style_resolver.py
"""
Derive the parent style id for a variant SKU.

The default convention is brand-specific: size codes are appended directly to
the style SKU (NCHOGBLK + M -> NCHOGBLKM). It is a heuristic and not
collision-free, so it sits behind a small strategy interface and tenants with
other conventions can supply their own.
"""

from typing import Optional, Protocol, Sequence

from stocksync.integrations.record_system.base import InventoryItem

# Smallest to largest. Also used to order variants within a style.
DEFAULT_SIZE_SUFFIXES = ("S", "M", "L", "XL", "2XL")


class StyleStrategy(Protocol):
    def extract(self, sku: str) -> Optional[str]:
        """Style id for the SKU, or None if the convention does not apply"""
        ...

    def size_rank(self, sku: str) -> Optional[int]:
        ...


class SuffixStyleStrategy:
    def __init__(self, suffixes: Sequence[str] = DEFAULT_SIZE_SUFFIXES):
        self.suffixes = tuple(s.upper() for s in suffixes)
        # Longest first so "XL" wins over "L" and "2XL" over "XL"
        self._match_order = sorted(self.suffixes, key=len, reverse=True)

    def _matching_suffix(self, sku: str) -> Optional[str]:
        normalized = (sku or "").strip().upper()
        for suffix in self._match_order:
            if len(normalized) > len(suffix) and normalized.endswith(suffix):
                return suffix
        return None

    def extract(self, sku: str) -> Optional[str]:
        suffix = self._matching_suffix(sku)
        if suffix is None:
            return None
        return sku.strip()[: -len(suffix)]

    def size_rank(self, sku: str) -> Optional[int]:
        suffix = self._matching_suffix(sku)
        return self.suffixes.index(suffix) if suffix else None


default_strategy = SuffixStyleStrategy()


def extract_style_from_sku(sku: str, strategy: StyleStrategy = default_strategy) -> str:
    """SKU with its size suffix removed; unchanged when no known suffix matches."""
    return strategy.extract(sku) or sku


def resolve_style_id(item: InventoryItem, strategy: StyleStrategy = default_strategy) -> str:
    """
    Style id for a changed item.

    Priority: suffix-stripped SKU, then the item's explicit style field, then
    the raw SKU as its own single-variant style.
    """
    deduced = strategy.extract(item.sku)
    if deduced:
        return deduced
    if item.style_id:
        return item.style_id
    return item.sku
