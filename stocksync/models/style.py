"""
Catalog model for aggregated styles.

A style is the parent product the storefront shows; its size/colour variants
live in the record system and are mirrored here as a JSON list that is
replaced wholesale on every sync.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func

from stocksync.database import Base
from stocksync.core.enums import StyleStatus


class Style(Base):
    __tablename__ = "styles"
    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_styles_tenant_sku"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)

    # Parent SKU is the style id derived from the variant SKUs
    sku = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    price = Column(String, nullable=True)

    # [{"sku": ..., "size": ..., "qty": ..., "price": ...}, ...]
    variants = Column(JSON, nullable=False, default=list)

    status = Column(String(16), nullable=False, default=StyleStatus.DRAFT.value, index=True)
    image_url = Column(String, nullable=True)
    remote_id = Column(String, nullable=True)  # storefront product id once published

    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    @property
    def total_quantity(self) -> int:
        return sum(int(v.get("qty") or 0) for v in (self.variants or []))

    def __repr__(self) -> str:
        return f"<Style(id={self.id}, tenant={self.tenant_id}, sku='{self.sku}', variants={len(self.variants or [])})>"
