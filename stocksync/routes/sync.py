# stocksync/routes/sync.py
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from stocksync.core.enums import DecrementJobStatus
from stocksync.dependencies import get_db, get_engine_registry, require_known_tenant
from stocksync.scheduler import get_scheduler_status
from stocksync.schemas.style import StyleRead
from stocksync.services.decrement_queue import count_jobs, list_jobs
from stocksync.services.engine_registry import EngineRegistry
from stocksync.services.sync_run_log import record_sync_run, recent_sync_runs

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sync", tags=["Synchronization Actions"])


def _job_to_dict(job) -> dict:
    return {
        "id": job.id,
        "order_id": job.order_id,
        "line_index": job.line_index,
        "sku": job.sku,
        "quantity": job.quantity,
        "status": job.status,
        "attempts": job.attempts,
        "next_attempt_at": job.next_attempt_at.isoformat() if job.next_attempt_at else None,
        "last_error": job.last_error,
    }


@router.post("/{tenant_id}/run")
async def run_sync_now(
    tenant_id: int = Depends(require_known_tenant),
    registry: EngineRegistry = Depends(get_engine_registry),
    db: AsyncSession = Depends(get_db),
):
    """Run one RMS -> catalog cycle immediately (skipped if one is in flight)."""
    logger.info(f"Manual sync requested for tenant {tenant_id}")
    report = await registry.engine_for(tenant_id).run_cycle()
    await record_sync_run(db, report)
    return report.to_dict()


@router.get("/{tenant_id}/status")
async def sync_status(
    tenant_id: int = Depends(require_known_tenant),
    registry: EngineRegistry = Depends(get_engine_registry),
    db: AsyncSession = Depends(get_db),
):
    engine = registry.engine_for(tenant_id)
    runs = await recent_sync_runs(db, tenant_id, limit=10)
    return {
        "tenant_id": tenant_id,
        "watermark": engine.watermark.isoformat(),
        "running": engine.is_running,
        "last_report": engine.last_report.to_dict() if engine.last_report else None,
        "webhook_mode": registry.delivery_mode.value,
        "dead_letter_count": await count_jobs(db, tenant_id, DecrementJobStatus.DEAD_LETTER.value),
        "recent_runs": [
            {
                "id": run.id,
                "status": run.status,
                "started_at": run.started_at.isoformat() if run.started_at else None,
                "items_changed": run.items_changed,
                "styles_synced": run.styles_synced,
                "failed_styles": run.failed_styles,
            }
            for run in runs
        ],
        "scheduler": get_scheduler_status(registry.scheduler),
    }


@router.get("/{tenant_id}/decrements")
async def list_decrement_jobs(
    tenant_id: int = Depends(require_known_tenant),
    status: Optional[DecrementJobStatus] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
):
    jobs = await list_jobs(db, tenant_id, status=status.value if status else None, limit=limit)
    return {"tenant_id": tenant_id, "jobs": [_job_to_dict(job) for job in jobs]}


@router.post("/{tenant_id}/decrements/retry")
async def retry_decrements(
    tenant_id: int = Depends(require_known_tenant),
    registry: EngineRegistry = Depends(get_engine_registry),
):
    """Attempt every due pending decrement now."""
    return await registry.ingestor_for(tenant_id).drain_queue()


@router.get("/{tenant_id}/styles", response_model=List[StyleRead])
async def list_synced_styles(
    tenant_id: int = Depends(require_known_tenant),
    registry: EngineRegistry = Depends(get_engine_registry),
):
    styles = await registry.catalog.list_styles(tenant_id)
    return [StyleRead.model_validate(style) for style in styles]
