# stocksync/services/webhook_ingestor.py
"""
Propagates storefront orders back to the record system.

In "ack" mode every line item is decremented inline and the storefront gets
its acknowledgement whatever happened underneath. In "durable" mode each line
is written to the stock_decrement_jobs table first and drained by
`WebhookIngestor.drain_queue`, which retries with backoff and dead-letters lines
that keep failing.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from stocksync.core.enums import WebhookDeliveryMode
from stocksync.core.exceptions import MalformedEventError
from stocksync.integrations.record_system.base import RecordSystemAdapter
from stocksync.schemas.webhook import OrderLineItem
from stocksync.services.decrement_queue import enqueue_order_lines, process_due_jobs

logger = logging.getLogger(__name__)


@dataclass
class WebhookResult:
    order_id: Optional[str]
    mode: WebhookDeliveryMode
    decremented: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    queued: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {
            "status": "received",
            "order_id": self.order_id,
            "mode": self.mode.value,
            "decremented": len(self.decremented),
            "failed": len(self.failed),
            "queued": self.queued,
            "skipped": self.skipped,
        }


def parse_line_item(raw: Any) -> OrderLineItem:
    """Validate one storefront line item, raising MalformedEventError if unusable."""
    if not isinstance(raw, dict):
        raise MalformedEventError(f"Line item is not an object: {raw!r}")
    try:
        line = OrderLineItem.model_validate(raw)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid line item: {e.errors()}") from e
    if not line.sku:
        raise MalformedEventError("Order line item missing SKU")
    if line.quantity <= 0:
        raise MalformedEventError(f"Order line item {line.sku} has non-positive quantity {line.quantity}")
    return line


def valid_lines(order_id: Optional[str], raw_lines: Any) -> Tuple[List[Tuple[int, OrderLineItem]], int]:
    """Return ((index, line) pairs that can be decremented, number skipped)."""
    if not isinstance(raw_lines, list):
        return [], 0

    lines, skipped = [], 0
    for index, raw in enumerate(raw_lines):
        try:
            lines.append((index, parse_line_item(raw)))
        except MalformedEventError as e:
            skipped += 1
            logger.warning(f"{e}; skipping RMS sync for order {order_id} line {index}.")
    return lines, skipped


class WebhookIngestor:
    def __init__(
        self,
        tenant_id: int,
        adapter: RecordSystemAdapter,
        mode: WebhookDeliveryMode = WebhookDeliveryMode.ACK,
        session_factory: Optional[async_sessionmaker] = None,
        max_attempts: int = 5,
        retry_base_seconds: int = 30,
    ):
        if mode == WebhookDeliveryMode.DURABLE and session_factory is None:
            raise ValueError("Durable webhook delivery needs a session factory")
        self.tenant_id = tenant_id
        self.adapter = adapter
        self.mode = mode
        self.session_factory = session_factory
        self.max_attempts = max_attempts
        self.retry_base_seconds = retry_base_seconds
        self._drain_lock = asyncio.Lock()

    async def handle_order_created(self, payload: Dict[str, Any]) -> WebhookResult:
        order_id = payload.get("id") if isinstance(payload, dict) else None
        order_id = str(order_id) if order_id is not None else None
        result = WebhookResult(order_id=order_id, mode=self.mode)
        logger.info(f"Received Web Order: {order_id}")

        raw_lines = payload.get("line_items") if isinstance(payload, dict) else None
        lines, result.skipped = valid_lines(order_id, raw_lines)
        if not lines:
            return result

        if self.mode == WebhookDeliveryMode.DURABLE:
            await self._enqueue(order_id, lines, result)
        else:
            await self._decrement_inline(lines, result)
        return result

    async def _decrement_inline(self, lines: List[Tuple[int, OrderLineItem]], result: WebhookResult):
        for _, line in lines:
            logger.info(f"Web Store sold {line.quantity} x {line.sku}. Updating RMS...")
            try:
                ok = await self.adapter.decrement_item_stock(line.sku, line.quantity)
            except Exception as e:
                logger.error(f"RMS decrement of {line.sku} raised: {e}")
                ok = False
            (result.decremented if ok else result.failed).append(line.sku)
            if not ok:
                logger.warning(f"RMS decrement of {line.sku} x{line.quantity} failed; storefront still acknowledged")

    async def _enqueue(self, order_id: Optional[str], lines: List[Tuple[int, OrderLineItem]], result: WebhookResult):
        if order_id is None:
            # Without an order id there is no way to de-duplicate redeliveries
            logger.warning("Order payload without id; decrementing inline instead of queueing")
            await self._decrement_inline(lines, result)
            return
        try:
            async with self.session_factory() as session:
                jobs = await enqueue_order_lines(session, tenant_id=self.tenant_id, order_id=order_id, lines=lines)
                await session.commit()
            result.queued = len(jobs)
        except IntegrityError as e:
            # A concurrent delivery of this order queued the lines first
            logger.info(f"Order {order_id} already queued by a concurrent delivery, ignoring: {e.orig}")
        except Exception as e:
            logger.exception(f"Could not queue decrements for order {order_id}, decrementing inline: {e}")
            await self._decrement_inline(lines, result)

    async def drain_queue(self) -> dict:
        """Process every due decrement job for this tenant once."""
        if self.session_factory is None:
            return {"processed": 0, "completed": 0, "retrying": 0, "dead_letter": 0}
        try:
            async with self._drain_lock, self.session_factory() as session:
                summary = await process_due_jobs(
                    session,
                    self.adapter,
                    self.tenant_id,
                    max_attempts=self.max_attempts,
                    base_seconds=self.retry_base_seconds,
                )
        except Exception as e:
            logger.exception(f"Error draining decrement queue for tenant {self.tenant_id}: {e}")
            return {"processed": 0, "completed": 0, "retrying": 0, "dead_letter": 0, "error": str(e)}
        if summary["processed"]:
            logger.info(f"Decrement queue for tenant {self.tenant_id}: {summary}")
        return summary
