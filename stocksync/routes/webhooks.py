import json
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Request

from stocksync.core.enums import WebhookDeliveryMode
from stocksync.core.security import verify_storefront_signature
from stocksync.dependencies import get_engine_registry, require_known_tenant
from stocksync.services.engine_registry import EngineRegistry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/storefront/{tenant_id}/order-created", dependencies=[Depends(verify_storefront_signature)])
async def storefront_order_created(
    request: Request,
    background_tasks: BackgroundTasks,
    tenant_id: int = Depends(require_known_tenant),
    registry: EngineRegistry = Depends(get_engine_registry),
):
    """
    Endpoint for the storefront's order.created webhook.

    Always answers 200 once the line items have been looked at, so the
    storefront never disables the webhook over a record system hiccup.
    """
    body = await request.body()
    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        # WooCommerce sends a form-encoded "webhook_id=..." ping when a hook is created
        logger.info(f"Ignoring non-JSON storefront delivery for tenant {tenant_id}")
        return {"status": "ignored"}

    if not isinstance(payload, dict):
        logger.warning(f"Ignoring storefront delivery with non-object body for tenant {tenant_id}")
        return {"status": "ignored"}

    ingestor = registry.ingestor_for(tenant_id)
    try:
        result = await ingestor.handle_order_created(payload)
    except Exception as e:
        logger.exception(f"Unhandled error processing order {payload.get('id')}: {e}")
        return {"status": "received", "order_id": str(payload.get("id")), "error": "processing_failed"}

    if ingestor.mode == WebhookDeliveryMode.DURABLE and result.queued:
        background_tasks.add_task(ingestor.drain_queue)

    return result.to_dict()
