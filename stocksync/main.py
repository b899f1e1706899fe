# stocksync/main.py

import logging
import os
import subprocess
from contextlib import asynccontextmanager

from fastapi import FastAPI

from stocksync import models  # noqa: F401  registers tables on Base.metadata
from stocksync.core.config import get_settings
from stocksync.core.logging_config import configure_logging
from stocksync.database import Base, async_session, engine
from stocksync.routes import health, sync, webhooks
from stocksync.scheduler import create_scheduler, start_scheduler, stop_scheduler
from stocksync.services.engine_registry import EngineRegistry

logger = logging.getLogger(__name__)


async def prepare_database(settings):
    if os.getenv("RUN_MIGRATIONS", "false").lower() == "true":
        logger.info("Running database migrations...")
        result = subprocess.run(["alembic", "upgrade", "head"], capture_output=True, text=True)
        if result.returncode == 0:
            logger.info("Migrations completed successfully")
        else:
            logger.error(f"Migration failed: {result.stderr}")
    elif settings.DATABASE_URL.startswith("sqlite"):
        # Local runs without alembic
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(debug=settings.DEBUG)
    await prepare_database(settings)

    registry = EngineRegistry(settings, async_session)
    registry.scheduler = create_scheduler(registry)
    app.state.engine_registry = registry
    start_scheduler(registry.scheduler)
    logger.info(f"Sync engine started for tenants {registry.tenant_ids} (webhooks: {registry.delivery_mode.value})")
    try:
        yield
    finally:
        stop_scheduler(registry.scheduler)
        await registry.close()


app = FastAPI(
    title="Stock Sync Engine",
    lifespan=lifespan
)

app.include_router(webhooks.router)  # Storefront signs its deliveries, no other auth
app.include_router(sync.router)
app.include_router(health.router)
