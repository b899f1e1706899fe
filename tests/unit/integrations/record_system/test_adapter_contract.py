# tests/unit/integrations/record_system/test_adapter_contract.py
"""
Every record system backend must behave the same way. The simulation and the
live backend (against a SQLite copy of the RMS Item table) run the same suite.
"""
from datetime import timedelta

import pytest

from stocksync.core.utils import as_utc, utc_now


@pytest.fixture(params=["simulation", "live_rms"])
def adapter(request):
    return request.getfixturevalue(request.param)


@pytest.mark.asyncio
async def test_get_item_by_sku(adapter):
    item = await adapter.get_item_by_sku("NCHOGBLKM")

    assert item is not None
    assert item.sku == "NCHOGBLKM"
    assert item.style_id == "NCHOGBLK"
    assert item.quantity == 15
    assert item.price == pytest.approx(54.95)
    assert item.description == "NorCal OG Hoodie Black (Medium)"
    assert item.last_updated.tzinfo is not None


@pytest.mark.asyncio
async def test_get_item_by_unknown_sku_returns_none(adapter):
    assert await adapter.get_item_by_sku("NOPE") is None


@pytest.mark.asyncio
async def test_items_updated_since_is_strictly_after(adapter):
    everything = await adapter.get_items_updated_since(utc_now() - timedelta(hours=1))
    assert len(everything) == 7

    newest = max(as_utc(item.last_updated) for item in everything)
    assert await adapter.get_items_updated_since(newest) == []


@pytest.mark.asyncio
async def test_items_updated_since_sees_a_write(adapter):
    everything = await adapter.get_items_updated_since(utc_now() - timedelta(hours=1))
    newest = max(as_utc(item.last_updated) for item in everything)

    assert await adapter.update_item_stock("NCTEEBLKM", 99) is True

    changed = await adapter.get_items_updated_since(newest)
    assert [item.sku for item in changed] == ["NCTEEBLKM"]
    assert changed[0].quantity == 99


@pytest.mark.asyncio
async def test_get_variants_by_style(adapter):
    variants = await adapter.get_variants_by_style("NCHOGBLK")
    assert sorted(v.sku for v in variants) == ["NCHOGBLKL", "NCHOGBLKM", "NCHOGBLKS", "NCHOGBLKXL"]


@pytest.mark.asyncio
async def test_get_variants_by_sku_as_style(adapter):
    variants = await adapter.get_variants_by_style("NCTEEBLKM")
    assert [v.sku for v in variants] == ["NCTEEBLKM"]


@pytest.mark.asyncio
async def test_get_variants_of_unknown_style_is_empty(adapter):
    assert await adapter.get_variants_by_style("NOPE") == []


@pytest.mark.asyncio
async def test_update_item_stock(adapter):
    assert await adapter.update_item_stock("NCHOGGRYS", 42) is True
    assert (await adapter.get_item_by_sku("NCHOGGRYS")).quantity == 42


@pytest.mark.asyncio
async def test_update_unknown_sku_returns_false(adapter):
    assert await adapter.update_item_stock("NOPE", 1) is False


@pytest.mark.asyncio
async def test_decrement_item_stock(adapter):
    assert await adapter.update_item_stock("NCHOGBLKS", 10) is True

    assert await adapter.decrement_item_stock("NCHOGBLKS", 3) is True
    assert (await adapter.get_item_by_sku("NCHOGBLKS")).quantity == 7


@pytest.mark.asyncio
async def test_decrement_defaults_to_one(adapter):
    assert await adapter.decrement_item_stock("NCHOGBLKXL") is True
    assert (await adapter.get_item_by_sku("NCHOGBLKXL")).quantity == 3


@pytest.mark.asyncio
async def test_decrement_unknown_sku_returns_false_and_mutates_nothing(adapter):
    before = await adapter.get_items_updated_since(utc_now() - timedelta(hours=1))

    assert await adapter.decrement_item_stock("SKU1", 3) is False

    after = await adapter.get_items_updated_since(utc_now() - timedelta(hours=1))
    assert sorted((i.sku, i.quantity) for i in after) == sorted((i.sku, i.quantity) for i in before)


@pytest.mark.asyncio
async def test_decrement_refuses_to_go_negative(adapter):
    assert await adapter.decrement_item_stock("NCHOGBLKXL", 5) is False
    assert (await adapter.get_item_by_sku("NCHOGBLKXL")).quantity == 4
