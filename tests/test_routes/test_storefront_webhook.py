# tests/test_routes/test_storefront_webhook.py
import json

import pytest

from stocksync.core.security import SIGNATURE_HEADER, compute_signature

URL = "/webhooks/storefront/1/order-created"


def _order_body(*line_items, order_id=9001):
    return json.dumps({"id": order_id, "status": "processing", "line_items": list(line_items)}).encode()


@pytest.mark.asyncio
async def test_order_decrements_record_system(client, registry):
    response = await client.post(URL, content=_order_body({"sku": "NCHOGBLKM", "quantity": 2}))

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "received"
    assert data["order_id"] == "9001"
    assert data["decremented"] == 1
    item = await registry.client_for(1).get_item_by_sku("NCHOGBLKM")
    assert item.quantity == 13


@pytest.mark.asyncio
async def test_failed_decrement_is_still_acknowledged(client):
    response = await client.post(URL, content=_order_body({"sku": "UNKNOWN", "quantity": 1}, {"name": "No sku"}))

    assert response.status_code == 200
    assert response.json()["failed"] == 1
    assert response.json()["skipped"] == 1


@pytest.mark.asyncio
async def test_non_json_ping_is_ignored(client):
    response = await client.post(
        URL,
        content=b"webhook_id=12",
        headers={"content-type": "application/x-www-form-urlencoded"},
    )
    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}


@pytest.mark.asyncio
async def test_unknown_tenant_is_404(client):
    response = await client.post("/webhooks/storefront/99/order-created", content=_order_body())
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_signature_required_when_secret_configured(client, settings):
    settings.STOREFRONT_WEBHOOK_SECRET = "s3cret"
    body = _order_body({"sku": "NCHOGBLKM", "quantity": 1})

    unsigned = await client.post(URL, content=body)
    forged = await client.post(URL, content=body, headers={SIGNATURE_HEADER: compute_signature(body, "wrong")})
    signed = await client.post(URL, content=body, headers={SIGNATURE_HEADER: compute_signature(body, "s3cret")})

    assert unsigned.status_code == 401
    assert forged.status_code == 401
    assert signed.status_code == 200
    assert signed.json()["decremented"] == 1


@pytest.mark.asyncio
async def test_durable_mode_queues_and_drains_in_background(client, settings, registry):
    settings.WEBHOOK_DELIVERY_MODE = "durable"
    body = _order_body({"sku": "NCHOGBLKM", "quantity": 2})

    first = await client.post(URL, content=body)
    again = await client.post(URL, content=body)

    assert first.json()["mode"] == "durable"
    assert first.json()["queued"] == 1
    assert again.json()["queued"] == 0
    item = await registry.client_for(1).get_item_by_sku("NCHOGBLKM")
    assert item.quantity == 13

    jobs = (await client.get("/api/sync/1/decrements")).json()["jobs"]
    assert [job["status"] for job in jobs] == ["completed"]
