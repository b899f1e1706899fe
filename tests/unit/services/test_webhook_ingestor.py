# tests/unit/services/test_webhook_ingestor.py
import asyncio
import logging

import pytest
from sqlalchemy.exc import IntegrityError

from stocksync.core.enums import DecrementJobStatus, WebhookDeliveryMode
from stocksync.core.exceptions import MalformedEventError
from stocksync.integrations.record_system.simulation import SimulationRecordSystem
from stocksync.services.decrement_queue import list_jobs
from stocksync.services.webhook_ingestor import WebhookIngestor, parse_line_item


def _order(*line_items, order_id=5001):
    return {"id": order_id, "status": "processing", "line_items": list(line_items)}


def test_parse_line_item_defaults_quantity_to_one():
    assert parse_line_item({"sku": "NCHOGBLKM"}).quantity == 1
    assert parse_line_item({"sku": "NCHOGBLKM", "quantity": None}).quantity == 1


@pytest.mark.parametrize(
    "raw",
    [
        {"quantity": 1},
        {"sku": "", "quantity": 1},
        {"sku": "   ", "quantity": 1},
        {"sku": "NCHOGBLKM", "quantity": 0},
        {"sku": "NCHOGBLKM", "quantity": -2},
        {"sku": "NCHOGBLKM", "quantity": "lots"},
        "NCHOGBLKM",
    ],
)
def test_parse_line_item_rejects_unusable_lines(raw):
    with pytest.raises(MalformedEventError):
        parse_line_item(raw)


@pytest.mark.asyncio
async def test_missing_sku_line_is_skipped_and_valid_line_decremented(mocker, caplog):
    rms = SimulationRecordSystem()
    decrement = mocker.spy(rms, "decrement_item_stock")
    ingestor = WebhookIngestor(1, rms)

    with caplog.at_level(logging.WARNING):
        result = await ingestor.handle_order_created(
            _order({"name": "Gift card", "quantity": 1}, {"sku": "NCHOGBLKM", "quantity": 2})
        )

    assert decrement.call_count == 1
    decrement.assert_called_once_with("NCHOGBLKM", 2)
    skip_logs = [r for r in caplog.records if "missing SKU" in r.getMessage()]
    assert len(skip_logs) == 1
    assert result.to_dict()["status"] == "received"
    assert result.skipped == 1
    assert result.decremented == ["NCHOGBLKM"]
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 13


@pytest.mark.asyncio
async def test_ack_mode_acknowledges_failed_decrements():
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms)

    result = await ingestor.handle_order_created(_order({"sku": "UNKNOWN", "quantity": 1}))

    assert result.to_dict()["status"] == "received"
    assert result.failed == ["UNKNOWN"]


@pytest.mark.asyncio
async def test_ack_mode_survives_adapter_exceptions(mocker):
    rms = SimulationRecordSystem()
    mocker.patch.object(rms, "decrement_item_stock", mocker.AsyncMock(side_effect=RuntimeError("link down")))
    ingestor = WebhookIngestor(1, rms)

    result = await ingestor.handle_order_created(
        _order({"sku": "NCHOGBLKM", "quantity": 1}, {"sku": "NCTEEBLKM", "quantity": 1})
    )

    assert result.failed == ["NCHOGBLKM", "NCTEEBLKM"]


@pytest.mark.asyncio
async def test_payload_without_line_items_is_acknowledged():
    ingestor = WebhookIngestor(1, SimulationRecordSystem())
    result = await ingestor.handle_order_created({"id": 7})
    assert result.to_dict() == {
        "status": "received",
        "order_id": "7",
        "mode": "ack",
        "decremented": 0,
        "failed": 0,
        "queued": 0,
        "skipped": 0,
    }


def test_durable_mode_requires_a_session_factory():
    with pytest.raises(ValueError):
        WebhookIngestor(1, SimulationRecordSystem(), mode=WebhookDeliveryMode.DURABLE)


@pytest.mark.asyncio
async def test_durable_mode_queues_then_drains(session_factory):
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=session_factory)

    result = await ingestor.handle_order_created(_order({"sku": "NCHOGBLKM", "quantity": 2}, {"quantity": 1}))

    assert result.queued == 1
    assert result.skipped == 1
    # Nothing touched until the queue drains
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 15

    summary = await ingestor.drain_queue()

    assert summary["completed"] == 1
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 13


@pytest.mark.asyncio
async def test_durable_mode_ignores_redelivered_order(session_factory):
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=session_factory)
    order = _order({"sku": "NCHOGBLKM", "quantity": 2})

    await ingestor.handle_order_created(order)
    await ingestor.drain_queue()
    redelivered = await ingestor.handle_order_created(order)
    await ingestor.drain_queue()

    assert redelivered.queued == 0
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 13
    async with session_factory() as session:
        jobs = await list_jobs(session, 1)
    assert [job.status for job in jobs] == [DecrementJobStatus.COMPLETED.value]


@pytest.mark.asyncio
async def test_durable_mode_without_order_id_decrements_inline(session_factory):
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=session_factory)

    result = await ingestor.handle_order_created({"line_items": [{"sku": "NCHOGBLKM", "quantity": 1}]})

    assert result.queued == 0
    assert result.decremented == ["NCHOGBLKM"]


@pytest.mark.asyncio
async def test_durable_mode_falls_back_inline_when_queue_unavailable(mocker):
    rms = SimulationRecordSystem()
    broken = mocker.MagicMock(side_effect=RuntimeError("catalog db down"))
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=broken)

    result = await ingestor.handle_order_created(_order({"sku": "NCHOGBLKM", "quantity": 1}))

    assert result.decremented == ["NCHOGBLKM"]
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 14


@pytest.mark.asyncio
async def test_concurrent_redelivery_decrements_once(session_factory, caplog):
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=session_factory)
    order = _order({"sku": "NCHOGBLKM", "quantity": 2}, order_id=42)

    with caplog.at_level(logging.INFO):
        results = await asyncio.gather(ingestor.handle_order_created(order), ingestor.handle_order_created(order))
    await ingestor.drain_queue()

    assert sum(r.queued for r in results) == 1
    assert all(r.decremented == [] for r in results)
    assert not [r for r in caplog.records if "decrementing inline" in r.getMessage()]
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 13
    async with session_factory() as session:
        jobs = await list_jobs(session, 1)
    assert [job.status for job in jobs] == [DecrementJobStatus.COMPLETED.value]


@pytest.mark.asyncio
async def test_unique_violation_on_enqueue_is_not_decremented_inline(session_factory, mocker):
    rms = SimulationRecordSystem()
    ingestor = WebhookIngestor(1, rms, mode=WebhookDeliveryMode.DURABLE, session_factory=session_factory)
    mocker.patch(
        "stocksync.services.webhook_ingestor.enqueue_order_lines",
        mocker.AsyncMock(side_effect=IntegrityError("INSERT INTO stock_decrement_jobs", {}, Exception("UNIQUE constraint failed"))),
    )
    decrement = mocker.spy(rms, "decrement_item_stock")

    result = await ingestor.handle_order_created(_order({"sku": "NCHOGBLKM", "quantity": 2}))

    assert result.queued == 0
    assert result.decremented == []
    decrement.assert_not_called()
    assert (await rms.get_item_by_sku("NCHOGBLKM")).quantity == 15
