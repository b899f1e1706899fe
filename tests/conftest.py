# tests/conftest.py
import pytest
from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from stocksync import models  # noqa: F401
from stocksync.core.config import Settings
from stocksync.core.utils import to_naive_utc
from stocksync.database import Base
from stocksync.integrations.record_system.base import RecordSystemConfig
from stocksync.integrations.record_system.connections import ConnectionRegistry
from stocksync.integrations.record_system.live import LiveRecordSystem, item_table, rms_metadata
from stocksync.integrations.record_system.simulation import SimulationRecordSystem, default_inventory
from stocksync.services.catalog_store import SqlCatalogStore


@pytest.fixture
def settings(tmp_path):
    """Provide test settings"""
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        RMS_HOST="simulation",
        SYNC_TENANT_IDS=[1],
        SYNC_SCHEDULE_ENABLED=False,
        STOREFRONT_WEBHOOK_SECRET="",
        WEBHOOK_DELIVERY_MODE="ack",
    )


@pytest.fixture
async def test_engine(settings):
    """Catalog database engine on a throwaway SQLite file (function-scoped)."""
    engine = create_async_engine(settings.DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Provide a database session for tests"""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def catalog(session_factory):
    return SqlCatalogStore(session_factory)


@pytest.fixture
def simulation():
    return SimulationRecordSystem()


@pytest.fixture
async def rms_url(tmp_path):
    """A SQLite stand-in for the RMS database, seeded with the default inventory."""
    url = f"sqlite+aiosqlite:///{tmp_path / 'rms.db'}"
    engine = create_async_engine(url)
    async with engine.begin() as conn:
        await conn.run_sync(rms_metadata.create_all)
        await conn.execute(
            insert(item_table),
            [
                {
                    "ItemLookupCode": row["sku"],
                    "StyleID": row["style_id"],
                    "Description": row["description"],
                    "Quantity": row["quantity"],
                    "Price": row["price"],
                    "LastUpdated": to_naive_utc(row["last_updated"]),
                }
                for row in default_inventory()
            ],
        )
    await engine.dispose()
    return url


@pytest.fixture
async def connections():
    registry = ConnectionRegistry()
    yield registry
    await registry.dispose_all()


@pytest.fixture
def live_rms(rms_url, connections):
    return LiveRecordSystem(1, RecordSystemConfig(url=rms_url), connections)
