from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from stocksync.database import Base
from stocksync.core.enums import DecrementJobStatus


class StockDecrementJob(Base):
    """
    One storefront order line waiting to be decremented in the record system.

    Rows are keyed by (tenant, order, line) so a redelivered webhook cannot
    enqueue the same line twice.
    """

    __tablename__ = "stock_decrement_jobs"
    __table_args__ = (
        UniqueConstraint("tenant_id", "order_id", "line_index", name="uq_decrement_jobs_line"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    order_id = Column(String(64), nullable=False, index=True)
    line_index = Column(Integer, nullable=False)
    sku = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)

    status = Column(String(32), nullable=False, default=DecrementJobStatus.PENDING.value, index=True)
    attempts = Column(Integer, nullable=False, default=0)
    next_attempt_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_attempt_at = Column(DateTime(timezone=True), nullable=True)
    last_error = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (f"<StockDecrementJob(id={self.id}, order='{self.order_id}', sku='{self.sku}', "
                f"qty={self.quantity}, status='{self.status}', attempts={self.attempts})>")
