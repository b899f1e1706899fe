"""
Storefront webhook signature verification.

WooCommerce signs each delivery with a base64-encoded HMAC-SHA256 of the raw
request body, sent in the X-WC-Webhook-Signature header.
"""

import base64
import hashlib
import hmac
import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from stocksync.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-WC-Webhook-Signature"


def compute_signature(body: bytes, secret: str) -> str:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def signature_is_valid(body: bytes, signature: Optional[str], secret: str) -> bool:
    if not signature:
        return False
    return hmac.compare_digest(signature.strip(), compute_signature(body, secret))


async def verify_storefront_signature(request: Request, settings: Settings = Depends(get_settings)):
    """Reject unsigned or mis-signed deliveries when a webhook secret is configured"""
    secret = settings.STOREFRONT_WEBHOOK_SECRET
    if not secret:
        logger.debug("STOREFRONT_WEBHOOK_SECRET not set; skipping webhook signature check")
        return

    body = await request.body()
    if not signature_is_valid(body, request.headers.get(SIGNATURE_HEADER), secret):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid webhook signature")
