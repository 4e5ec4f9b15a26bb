"""Payment provider webhook (acknowledgement only)."""

import logging
from typing import Any

from fastapi import APIRouter, Body

from app.models.compliance import PaymentWebhookAck

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/webhook", response_model=PaymentWebhookAck)
async def payment_webhook(notification: dict[str, Any] = Body(...)) -> PaymentWebhookAck:
    """
    Receive a YooKassa payment notification.

    The notification is logged and acknowledged. Signature verification and
    order updates are not implemented.
    """
    payment = notification.get("object")
    payment_id = payment.get("id") if isinstance(payment, dict) else None
    logger.info(
        f"Payment webhook received: event={notification.get('event')} payment={payment_id}"
    )
    return PaymentWebhookAck(success=True)
