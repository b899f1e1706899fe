# stocksync/models/sync_run.py
from sqlalchemy import Column, Integer, String, DateTime, JSON, Text

from stocksync.database import Base


class SyncRun(Base):
    """
    Audit record for a single RMS -> catalog poll cycle.
    Skipped cycles (run-lock held) are not recorded.
    """
    __tablename__ = "sync_runs"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    status = Column(String(16), nullable=False, index=True)  # completed, failed

    started_at = Column(DateTime(timezone=True), nullable=False)
    finished_at = Column(DateTime(timezone=True), nullable=True)

    watermark_before = Column(DateTime(timezone=True), nullable=True)
    watermark_after = Column(DateTime(timezone=True), nullable=True)

    items_changed = Column(Integer, nullable=False, default=0)
    styles_synced = Column(Integer, nullable=False, default=0)
    styles_skipped = Column(Integer, nullable=False, default=0)
    failed_styles = Column(JSON, nullable=False, default=list)

    notes = Column(Text, nullable=True)  # top-level error message for failed cycles

    def __repr__(self):
        return (f"<SyncRun(id={self.id}, tenant={self.tenant_id}, status='{self.status}', "
                f"items={self.items_changed}, synced={self.styles_synced})>")
