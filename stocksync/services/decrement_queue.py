"""Helpers for enqueuing and draining durable stock decrement jobs."""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stocksync.core.enums import DecrementJobStatus
from stocksync.core.utils import utc_now
from stocksync.integrations.record_system.base import RecordSystemAdapter
from stocksync.models.stock_decrement_job import StockDecrementJob
from stocksync.schemas.webhook import OrderLineItem

logger = logging.getLogger(__name__)


async def enqueue_order_lines(
    db: AsyncSession,
    *,
    tenant_id: int,
    order_id: str,
    lines: Sequence[Tuple[int, OrderLineItem]],
) -> List[StockDecrementJob]:
    """
    Create pending jobs for (line_index, line) pairs not already queued for
    this order. Redelivered webhooks therefore add nothing.
    """
    result = await db.execute(
        select(StockDecrementJob.line_index).where(
            StockDecrementJob.tenant_id == tenant_id,
            StockDecrementJob.order_id == order_id,
        )
    )
    already_queued = set(result.scalars().all())

    jobs = []
    for line_index, line in lines:
        if line_index in already_queued:
            logger.info(f"Order {order_id} line {line_index} already queued, ignoring duplicate delivery")
            continue
        job = StockDecrementJob(
            tenant_id=tenant_id,
            order_id=order_id,
            line_index=line_index,
            sku=line.sku,
            quantity=line.quantity,
            status=DecrementJobStatus.PENDING.value,
            attempts=0,
            next_attempt_at=utc_now(),
        )
        db.add(job)
        jobs.append(job)
    await db.flush()
    return jobs


async def fetch_due_jobs(
    db: AsyncSession,
    tenant_id: int,
    now: Optional[datetime] = None,
    limit: int = 100,
    exclude_ids: Sequence[int] = (),
) -> List[StockDecrementJob]:
    now = now or utc_now()
    stmt = (
        select(StockDecrementJob)
        .where(
            StockDecrementJob.tenant_id == tenant_id,
            StockDecrementJob.status == DecrementJobStatus.PENDING.value,
            or_(StockDecrementJob.next_attempt_at.is_(None), StockDecrementJob.next_attempt_at <= now),
        )
        .order_by(StockDecrementJob.id.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    if exclude_ids:
        stmt = stmt.where(StockDecrementJob.id.notin_(exclude_ids))
    result = await db.execute(stmt)
    return list(result.scalars().all())


def retry_delay(attempts: int, base_seconds: int) -> timedelta:
    return timedelta(seconds=base_seconds * (2 ** max(attempts - 1, 0)))


async def mark_job_completed(db: AsyncSession, job: StockDecrementJob) -> None:
    job.status = DecrementJobStatus.COMPLETED.value
    job.last_error = None
    job.next_attempt_at = None
    await db.flush()


async def mark_job_failed(
    db: AsyncSession,
    job: StockDecrementJob,
    error_message: str,
    max_attempts: int,
    base_seconds: int,
) -> None:
    job.last_error = error_message[:2000]
    if job.attempts >= max_attempts:
        job.status = DecrementJobStatus.DEAD_LETTER.value
        job.next_attempt_at = None
        logger.error(
            f"Decrement of {job.sku} x{job.quantity} for order {job.order_id} dead-lettered "
            f"after {job.attempts} attempts: {error_message}"
        )
    else:
        job.next_attempt_at = utc_now() + retry_delay(job.attempts, base_seconds)
        logger.warning(
            f"Decrement of {job.sku} x{job.quantity} for order {job.order_id} failed "
            f"(attempt {job.attempts}/{max_attempts}), retrying at {job.next_attempt_at.isoformat()}"
        )
    await db.flush()


async def process_due_jobs(
    db: AsyncSession,
    adapter: RecordSystemAdapter,
    tenant_id: int,
    max_attempts: int = 5,
    base_seconds: int = 30,
    batch_size: int = 100,
) -> dict:
    """
    Claim due jobs one at a time and attempt each once.

    Every outcome is committed before the next job is claimed, so a failed
    commit or a crash can only replay the job in hand.
    """
    summary = {"processed": 0, "completed": 0, "retrying": 0, "dead_letter": 0}
    attempted: List[int] = []
    while len(attempted) < batch_size:
        claimed = await fetch_due_jobs(db, tenant_id, limit=1, exclude_ids=attempted)
        if not claimed:
            break
        job = claimed[0]
        attempted.append(job.id)
        summary["processed"] += 1
        job.attempts += 1
        job.last_attempt_at = utc_now()
        try:
            ok = await adapter.decrement_item_stock(job.sku, job.quantity)
            error = None if ok else "Record system rejected decrement (unknown SKU, insufficient stock or unavailable)"
        except Exception as e:
            ok, error = False, str(e)

        if ok:
            await mark_job_completed(db, job)
            summary["completed"] += 1
        else:
            await mark_job_failed(db, job, error, max_attempts, base_seconds)
            if job.status == DecrementJobStatus.DEAD_LETTER.value:
                summary["dead_letter"] += 1
            else:
                summary["retrying"] += 1
        await db.commit()
    return summary


async def list_jobs(
    db: AsyncSession,
    tenant_id: int,
    status: Optional[str] = None,
    limit: int = 100,
) -> List[StockDecrementJob]:
    stmt = select(StockDecrementJob).where(StockDecrementJob.tenant_id == tenant_id)
    if status:
        stmt = stmt.where(StockDecrementJob.status == status)
    stmt = stmt.order_by(StockDecrementJob.id.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def count_jobs(db: AsyncSession, tenant_id: int, status: str) -> int:
    stmt = select(func.count(StockDecrementJob.id)).where(
        StockDecrementJob.tenant_id == tenant_id,
        StockDecrementJob.status == status,
    )
    result = await db.execute(stmt)
    return result.scalar() or 0
