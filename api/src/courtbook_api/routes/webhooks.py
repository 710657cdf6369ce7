"""Webhook endpoints for DOKU payment notifications.

These endpoints do NOT require caller identity: DOKU posts server to
server. When DOKU_VERIFY_NOTIFICATIONS is on the Signature header is
checked against the raw body before anything is written.
"""

import json

from fastapi import APIRouter, Depends, Request
from starlette.status import HTTP_200_OK

from courtbook.models import BookingError, ErrorCode, NotificationAck
from courtbook.services.webhook_handler import WebhookReconciler
from courtbook.utils.logging import get_logger
from courtbook_api.dependencies import get_webhook_reconciler

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/doku",
    summary="DOKU payment notification",
    description="""
Receive a DOKU payment notification and reconcile the booking status.

`transaction.status` maps to: SUCCESS -> paid, FAILED -> failed,
EXPIRED -> expired, anything else -> pending. Bookings that already
reached paid, failed or expired are left as they are.

Returns 200 for every notification that was processed (including unknown
invoices) so DOKU stops retrying. Store failures return 503 so DOKU
retries later.
""",
    response_model=NotificationAck,
    status_code=HTTP_200_OK,
    responses={
        200: {"description": "Notification processed"},
        400: {"description": "Body is not JSON or has no invoice number"},
        401: {"description": "Notification signature mismatch"},
        503: {"description": "Booking store unavailable, retry later"},
    },
)
async def doku_notification(
    request: Request,
    reconciler: WebhookReconciler = Depends(get_webhook_reconciler),
) -> NotificationAck:
    """Apply a DOKU notification to the booking it names."""
    raw_body = await request.body()

    try:
        payload = json.loads(raw_body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.error("DOKU notification body is not JSON: %s", e)
        raise BookingError(
            code=ErrorCode.MALFORMED_NOTIFICATION,
            details={"reason": "body is not valid JSON"},
            message="Notification body is not valid JSON",
        ) from e

    return reconciler.handle(payload, headers=request.headers, raw_body=raw_body)
