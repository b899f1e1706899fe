# stocksync/services/sync_run_log.py
import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksync.core.enums import SyncRunStatus
from stocksync.models.sync_run import SyncRun
from stocksync.services.sync_engine import SyncCycleReport

logger = logging.getLogger(__name__)


async def record_sync_run(db: AsyncSession, report: SyncCycleReport):
    """
    Persist a cycle report. Skipped cycles are not worth a row.

    Failures here are logged and swallowed: the audit trail must not take the
    scheduler down with it.
    """
    if report.status == SyncRunStatus.SKIPPED:
        return None
    try:
        run = SyncRun(
            tenant_id=report.tenant_id,
            status=report.status.value,
            started_at=report.started_at,
            finished_at=report.finished_at,
            watermark_before=report.watermark_before,
            watermark_after=report.watermark_after,
            items_changed=report.items_changed,
            styles_synced=report.styles_synced,
            styles_skipped=len(report.styles_skipped),
            failed_styles=list(report.styles_failed),
            notes=report.error,
        )
        db.add(run)
        await db.commit()
        return run
    except Exception as e:
        logger.error(f"Error recording sync run for tenant {report.tenant_id}: {str(e)}")
        await db.rollback()
        return None


async def recent_sync_runs(db: AsyncSession, tenant_id: int, limit: int = 20) -> List[SyncRun]:
    result = await db.execute(
        select(SyncRun)
        .where(SyncRun.tenant_id == tenant_id)
        .order_by(SyncRun.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
