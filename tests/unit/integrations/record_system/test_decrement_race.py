# tests/unit/integrations/record_system/test_decrement_race.py
"""
Read-then-write decrements lose updates when two orders for the same SKU land
together. The conditional UPDATE used by decrement_item_stock does not.
"""
import asyncio

import pytest

from stocksync.integrations.record_system.simulation import SimulationRecordSystem


def _rms():
    return SimulationRecordSystem(
        items=[{"sku": "SKU1", "style_id": "SKU", "quantity": 10, "description": "Race (M)", "price": 1.0}],
        latency=0.01,
    )


@pytest.mark.asyncio
async def test_read_write_decrement_loses_an_update():
    rms = _rms()

    results = await asyncio.gather(
        rms.decrement_by_read_write("SKU1", 1),
        rms.decrement_by_read_write("SKU1", 1),
    )

    # Both report success, but both read 10 and wrote 9
    assert results == [True, True]
    assert (await rms.get_item_by_sku("SKU1")).quantity == 9


@pytest.mark.asyncio
async def test_atomic_decrement_applies_both_updates():
    rms = _rms()

    results = await asyncio.gather(
        rms.decrement_item_stock("SKU1", 1),
        rms.decrement_item_stock("SKU1", 1),
    )

    assert results == [True, True]
    assert (await rms.get_item_by_sku("SKU1")).quantity == 8


@pytest.mark.asyncio
async def test_atomic_decrement_cannot_oversell():
    rms = _rms()

    results = await asyncio.gather(*(rms.decrement_item_stock("SKU1", 3) for _ in range(5)))

    assert results.count(True) == 3
    assert (await rms.get_item_by_sku("SKU1")).quantity == 1


@pytest.mark.asyncio
async def test_live_atomic_decrements_do_not_lose_updates(live_rms):
    results = await asyncio.gather(*(live_rms.decrement_item_stock("NCTEEBLKM", 1) for _ in range(5)))

    assert all(results)
    assert (await live_rms.get_item_by_sku("NCTEEBLKM")).quantity == 95
