from sqlalchemy import Column, Integer, String, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from stocksync.database import Base


class TenantSetting(Base):
    """
    Per-tenant configuration override, e.g. RMS_HOST or RMS_PASSWORD.

    Values are stored as handed to us by the settings owner; encrypting them
    at rest is that owner's job.
    """

    __tablename__ = "tenant_settings"
    __table_args__ = (
        UniqueConstraint("tenant_id", "key_name", name="uq_tenant_settings_key"),
    )

    id = Column(Integer, primary_key=True)
    tenant_id = Column(Integer, nullable=False, index=True)
    key_name = Column(String(64), nullable=False)
    key_value = Column(Text, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<TenantSetting(tenant={self.tenant_id}, key={self.key_name})>"
