from typing import AsyncGenerator
from fastapi import Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stocksync.database import async_session
from stocksync.services.engine_registry import EngineRegistry


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session() as session:
        try:
            yield session
        finally:
            await session.close()


def get_engine_registry(request: Request) -> EngineRegistry:
    registry = getattr(request.app.state, "engine_registry", None)
    if registry is None:
        raise HTTPException(status_code=503, detail="Sync engine not initialised")
    return registry


def require_known_tenant(tenant_id: int, registry: EngineRegistry = Depends(get_engine_registry)) -> int:
    if tenant_id not in registry.tenant_ids:
        raise HTTPException(status_code=404, detail=f"Unknown tenant {tenant_id}")
    return tenant_id
