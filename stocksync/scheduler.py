"""
Scheduled tasks for the sync engine.

One interval job per tenant polls the record system; in durable webhook mode
a second job per tenant drains the stock decrement queue. Both run inside the
FastAPI process on the asyncio event loop.
"""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.events import EVENT_JOB_ERROR, EVENT_JOB_EXECUTED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from stocksync.core.enums import WebhookDeliveryMode
from stocksync.core.utils import utc_now
from stocksync.services.engine_registry import EngineRegistry
from stocksync.services.sync_run_log import record_sync_run

logger = logging.getLogger(__name__)


async def poll_record_system_task(registry: EngineRegistry, tenant_id: int):
    """Run one RMS -> catalog cycle and keep an audit row of it"""
    engine = registry.engine_for(tenant_id)
    report = await engine.run_cycle()
    async with registry.session_factory() as db:
        await record_sync_run(db, report)
    return report.to_dict()


async def drain_decrement_queue_task(registry: EngineRegistry, tenant_id: int):
    """Retry due stock decrements for a tenant"""
    return await registry.ingestor_for(tenant_id).drain_queue()


def job_listener(event):
    """Listen to job events for logging"""
    if event.exception:
        logger.error(f"Job {event.job_id} crashed: {event.exception}")
    else:
        logger.debug(f"Job {event.job_id} executed successfully at {datetime.now()}")


def create_scheduler(registry: EngineRegistry) -> AsyncIOScheduler:
    """Create and configure the scheduler"""
    settings = registry.settings
    scheduler = AsyncIOScheduler()
    scheduler.add_listener(job_listener, EVENT_JOB_EXECUTED | EVENT_JOB_ERROR)

    if not settings.SYNC_SCHEDULE_ENABLED:
        logger.info("Scheduled sync is disabled. Set SYNC_SCHEDULE_ENABLED=true to enable")
        return scheduler

    for tenant_id in registry.tenant_ids:
        scheduler.add_job(
            poll_record_system_task,
            IntervalTrigger(seconds=settings.POLL_INTERVAL_SECONDS),
            args=[registry, tenant_id],
            id=f"poll_record_system_{tenant_id}",
            name=f"Poll RMS (tenant {tenant_id})",
            replace_existing=True,
            max_instances=1,  # the engine's run-lock also guards this
            coalesce=True,
            next_run_time=utc_now(),  # cold-start run
        )
        logger.info(f"Poll job added for tenant {tenant_id} every {settings.POLL_INTERVAL_SECONDS}s")

        if registry.delivery_mode == WebhookDeliveryMode.DURABLE:
            scheduler.add_job(
                drain_decrement_queue_task,
                IntervalTrigger(seconds=settings.DECREMENT_RETRY_INTERVAL_SECONDS),
                args=[registry, tenant_id],
                id=f"drain_decrement_queue_{tenant_id}",
                name=f"Drain decrement queue (tenant {tenant_id})",
                replace_existing=True,
                max_instances=1,
                coalesce=True,
            )
            logger.info(f"Decrement retry job added for tenant {tenant_id}")

    return scheduler


def start_scheduler(scheduler: AsyncIOScheduler):
    if not scheduler.running:
        scheduler.start()
        jobs = scheduler.get_jobs()
        logger.info(f"Scheduler started with {len(jobs)} job(s)")
        for job in jobs:
            logger.info(f"  - {job.name}: {job.trigger}")


def stop_scheduler(scheduler: Optional[AsyncIOScheduler]):
    if scheduler and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped successfully")


def get_scheduler_status(scheduler: Optional[AsyncIOScheduler]) -> dict:
    if scheduler is None:
        return {"status": "not_initialized", "jobs": []}
    return {
        "status": "running" if scheduler.running else "stopped",
        "jobs": [
            {
                "id": job.id,
                "name": job.name,
                "next_run": job.next_run_time.isoformat() if getattr(job, "next_run_time", None) else None,
                "trigger": str(job.trigger),
            }
            for job in scheduler.get_jobs()
        ],
    }
