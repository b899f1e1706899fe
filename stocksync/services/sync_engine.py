# stocksync/services/sync_engine.py
"""
RMS -> catalog synchronisation for one tenant.

There is no push channel from the record system, so each cycle:
1. asks the record system for items changed since the watermark,
2. folds the changed variants into a de-duplicated set of styles,
3. re-aggregates every affected style from its full variant set,
4. upserts the result into the catalog,
5. advances the watermark to the newest change it saw.

Each engine owns its own watermark and run-lock; build one per tenant (or
per test). Nothing raised inside a cycle escapes `run_cycle`.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Set

from stocksync.core.enums import SyncRunStatus
from stocksync.core.exceptions import StyleNotFoundError, TransientQueryError
from stocksync.core.utils import as_utc, utc_now
from stocksync.integrations.record_system.base import RecordSystemAdapter
from stocksync.services.catalog_store import CatalogStore, upsert_style
from stocksync.services.style_resolver import StyleStrategy, default_strategy, resolve_style_id
from stocksync.services.variant_aggregator import aggregate_style

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_IMAGE = "https://via.placeholder.com/400?text=Pending+Photo"


@dataclass
class SyncCycleReport:
    """Summary of one poll cycle"""
    tenant_id: int
    status: SyncRunStatus
    started_at: datetime
    finished_at: Optional[datetime] = None
    watermark_before: Optional[datetime] = None
    watermark_after: Optional[datetime] = None
    items_changed: int = 0
    styles_found: int = 0
    styles_created: List[str] = field(default_factory=list)
    styles_updated: List[str] = field(default_factory=list)
    styles_skipped: List[str] = field(default_factory=list)
    styles_failed: List[str] = field(default_factory=list)
    error: Optional[str] = None
    processing_time_seconds: float = 0.0

    @property
    def styles_synced(self) -> int:
        return len(self.styles_created) + len(self.styles_updated)

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "watermark_before": self.watermark_before.isoformat() if self.watermark_before else None,
            "watermark_after": self.watermark_after.isoformat() if self.watermark_after else None,
            "items_changed": self.items_changed,
            "styles_found": self.styles_found,
            "styles_created": self.styles_created,
            "styles_updated": self.styles_updated,
            "styles_skipped": self.styles_skipped,
            "styles_failed": self.styles_failed,
            "error": self.error,
            "processing_time_seconds": round(self.processing_time_seconds, 3),
        }


class SyncEngine:
    def __init__(
        self,
        tenant_id: int,
        adapter: RecordSystemAdapter,
        catalog: CatalogStore,
        strategy: StyleStrategy = default_strategy,
        watermark: Optional[datetime] = None,
        grace_window: timedelta = timedelta(hours=1),
        placeholder_image_url: str = DEFAULT_PLACEHOLDER_IMAGE,
    ):
        self.tenant_id = tenant_id
        self.adapter = adapter
        self.catalog = catalog
        self.strategy = strategy
        self.placeholder_image_url = placeholder_image_url
        # Cold start looks back over the grace window so changes made just
        # before boot are not missed
        self._watermark = as_utc(watermark) if watermark else utc_now() - grace_window
        self._running = False
        self.last_report: Optional[SyncCycleReport] = None

    @property
    def watermark(self) -> datetime:
        return self._watermark

    @property
    def is_running(self) -> bool:
        return self._running

    async def run_cycle(self) -> SyncCycleReport:
        report = SyncCycleReport(
            tenant_id=self.tenant_id,
            status=SyncRunStatus.SKIPPED,
            started_at=utc_now(),
            watermark_before=self._watermark,
            watermark_after=self._watermark,
        )

        if self._running:
            logger.info(f"Sync already running for tenant {self.tenant_id}, skipping...")
            report.finished_at = utc_now()
            return report

        self._running = True
        start = time.monotonic()
        logger.info(f"Starting RMS -> Web sync for tenant {self.tenant_id} (since {self._watermark.isoformat()})")

        try:
            changes = await self.adapter.get_items_updated_since(self._watermark)
            report.items_changed = len(changes)
            logger.info(f"Found {len(changes)} changed items in RMS.")

            max_seen = self._watermark
            style_ids: Set[str] = set()
            for item in changes:
                style_ids.add(resolve_style_id(item, self.strategy))
                updated_at = as_utc(item.last_updated)
                if updated_at and updated_at > max_seen:
                    max_seen = updated_at

            report.styles_found = len(style_ids)
            if style_ids:
                logger.info(f"[SYNC] Found {len(style_ids)} unique styles to update.")

            for style_id in sorted(style_ids):
                await self._sync_style(style_id, report)

            self._watermark = max(self._watermark, max_seen)
            report.status = SyncRunStatus.COMPLETED
        except Exception as e:
            logger.exception(f"Sync cycle error for tenant {self.tenant_id}: {e}")
            report.status = SyncRunStatus.FAILED
            report.error = str(e)
        finally:
            self._running = False
            report.watermark_after = self._watermark
            report.finished_at = utc_now()
            report.processing_time_seconds = time.monotonic() - start
            self.last_report = report

        logger.info(
            f"Sync cycle {report.status.value} for tenant {self.tenant_id}: "
            f"{report.styles_synced} synced, {len(report.styles_skipped)} skipped, "
            f"{len(report.styles_failed)} failed"
        )
        return report

    async def _sync_style(self, style_id: str, report: SyncCycleReport):
        try:
            try:
                snapshot = await aggregate_style(self.adapter, style_id, self.strategy)
            except StyleNotFoundError:
                raise
            except Exception as e:
                raise TransientQueryError(f"Aggregation failed for style {style_id}: {e}") from e

            _, created = await upsert_style(self.catalog, self.tenant_id, snapshot, self.placeholder_image_url)
            (report.styles_created if created else report.styles_updated).append(style_id)
        except StyleNotFoundError:
            logger.warning(f"[SYNC] No variants found for Style {style_id}")
            report.styles_skipped.append(style_id)
        except Exception as e:
            logger.error(f"[SYNC] Failed to process Style {style_id}: {e}")
            report.styles_failed.append(style_id)
