# stocksync/services/catalog_store.py
"""
Persistence of aggregated styles in the storefront catalog database.

The store is the narrow contract the sync engine writes through:
find_style / create_style / update_style. `upsert_style` layers the
find-or-create and wholesale-replace rules on top of it.
"""

import logging
from typing import Any, Dict, Optional, Protocol, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from stocksync.core.enums import StyleStatus
from stocksync.core.exceptions import CatalogStoreError
from stocksync.core.utils import utc_now
from stocksync.models.style import Style
from stocksync.schemas.style import StyleCreate
from stocksync.services.variant_aggregator import StyleSnapshot

logger = logging.getLogger(__name__)

# Fields the sync engine is allowed to overwrite on an existing style
UPDATABLE_FIELDS = {"name", "description", "price", "variants", "status", "image_url", "remote_id", "last_synced_at"}


class CatalogStore(Protocol):
    async def find_style(self, tenant_id: int, style_sku: str) -> Optional[Style]:
        ...

    async def create_style(self, data: StyleCreate) -> Style:
        ...

    async def update_style(self, style_id: int, changes: Dict[str, Any]) -> Optional[Style]:
        ...


class SqlCatalogStore:
    """Catalog store backed by the `styles` table. Each call is its own transaction."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def find_style(self, tenant_id: int, style_sku: str) -> Optional[Style]:
        try:
            async with self.session_factory() as session:
                return await session.scalar(
                    select(Style).where(Style.tenant_id == tenant_id, Style.sku == style_sku)
                )
        except SQLAlchemyError as e:
            raise CatalogStoreError(f"Failed to look up style {style_sku}: {e}") from e

    async def create_style(self, data: StyleCreate) -> Style:
        try:
            async with self.session_factory() as session:
                style = Style(**data.model_dump(mode="json", exclude={"last_synced_at"}))
                style.last_synced_at = data.last_synced_at
                session.add(style)
                await session.commit()
                await session.refresh(style)
                return style
        except SQLAlchemyError as e:
            raise CatalogStoreError(f"Failed to create style {data.sku}: {e}") from e

    async def update_style(self, style_id: int, changes: Dict[str, Any]) -> Optional[Style]:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update style fields: {sorted(unknown)}")
        try:
            async with self.session_factory() as session:
                style = await session.get(Style, style_id)
                if style is None:
                    return None
                for field, value in changes.items():
                    setattr(style, field, value)
                await session.commit()
                await session.refresh(style)
                return style
        except SQLAlchemyError as e:
            raise CatalogStoreError(f"Failed to update style {style_id}: {e}") from e

    async def list_styles(self, tenant_id: int):
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Style).where(Style.tenant_id == tenant_id).order_by(Style.sku)
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise CatalogStoreError(f"Failed to list styles for tenant {tenant_id}: {e}") from e


async def upsert_style(
    catalog: CatalogStore,
    tenant_id: int,
    snapshot: StyleSnapshot,
    placeholder_image_url: str,
) -> Tuple[Style, bool]:
    """
    Write a style snapshot. Returns (style, created).

    An existing style has its name and variant list replaced wholesale; a new
    one starts life as a draft with a placeholder image.
    """
    variants = snapshot.variants_payload()
    existing = await catalog.find_style(tenant_id, snapshot.style_id)

    if existing:
        logger.info(f"[SYNC] Updating Style {snapshot.style_id} ({len(variants)} variants)")
        updated = await catalog.update_style(
            existing.id,
            {"name": snapshot.name, "variants": variants, "last_synced_at": utc_now()},
        )
        return updated or existing, False

    logger.info(f"[SYNC] Creating New Style {snapshot.style_id}")
    created = await catalog.create_style(
        StyleCreate(
            tenant_id=tenant_id,
            sku=snapshot.style_id,
            name=snapshot.name,
            description=f"Imported Style: {snapshot.style_id}. Contains {len(variants)} variants.",
            price=f"{snapshot.price:.2f}",
            variants=variants,
            status=StyleStatus.DRAFT,
            image_url=placeholder_image_url,
            last_synced_at=utc_now(),
        )
    )
    return created, True
