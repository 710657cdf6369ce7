"""Reconciles DOKU payment notifications into booking status.

This is the only automated path that moves a booking into a terminal
status (paid, failed, expired). Kept separate from HTTP routing so it can
be unit tested without a web stack.
"""

import json
from collections.abc import Mapping
from typing import Any

from courtbook.config import GatewayConfig
from courtbook.models import (
    BookingError,
    DokuNotification,
    ErrorCode,
    NotificationAck,
    map_transaction_status,
)
from courtbook.services import signer
from courtbook.services.booking_store import BookingStore
from courtbook.utils.logging import get_logger, log_webhook_event

logger = get_logger(__name__)


class WebhookReconciler:
    """Applies DOKU notifications to the booking store.

    Status mapping: SUCCESS -> paid, FAILED -> failed, EXPIRED -> expired,
    anything else -> pending.
    """

    def __init__(self, store: BookingStore, config: GatewayConfig) -> None:
        """Initialize reconciler.

        Args:
            store: Booking store
            config: Gateway configuration (signature check and terminal guard)
        """
        self.store = store
        self.config = config

    def verify_signature(self, headers: Mapping[str, str], raw_body: bytes) -> None:
        """Reject notifications whose Signature header does not match.

        Raises:
            BookingError: INVALID_NOTIFICATION_SIGNATURE
        """
        valid = signer.verify(
            headers,
            raw_body,
            client_id=self.config.client_id,
            secret_key=self.config.secret_key.get_secret_value(),
            target_path=self.config.notification_target,
        )
        if not valid:
            logger.warning("DOKU notification signature mismatch")
            raise BookingError(code=ErrorCode.INVALID_NOTIFICATION_SIGNATURE)

    def handle(
        self,
        payload: Any,
        *,
        headers: Mapping[str, str] | None = None,
        raw_body: bytes | None = None,
    ) -> NotificationAck:
        """Reconcile one notification.

        Args:
            payload: Parsed notification JSON
            headers: Request headers (needed when signature checks are on)
            raw_body: Exact request body (needed when signature checks are on)

        Returns:
            NotificationAck for DOKU.

        Raises:
            BookingError: MALFORMED_NOTIFICATION when the invoice number is
                missing (nothing is written), INVALID_NOTIFICATION_SIGNATURE,
                or STORE_FAILURE so DOKU retries later.
        """
        if self.config.verify_notifications:
            if raw_body is None:
                raw_body = json.dumps(payload).encode("utf-8")
            self.verify_signature(headers or {}, raw_body)

        notification = DokuNotification.from_payload(payload)

        if not notification.invoice_number:
            log_webhook_event(
                logger,
                None,
                notification.transaction_status,
                result="error",
                error="missing order.invoice_number",
                payload=_truncate(payload),
            )
            raise BookingError(code=ErrorCode.MALFORMED_NOTIFICATION)

        payment_status = map_transaction_status(notification.transaction_status)
        log_webhook_event(
            logger,
            notification.invoice_number,
            notification.transaction_status,
            payment_status=payment_status.value,
            result="received",
        )

        outcome = self.store.update_payment_status(
            notification.invoice_number,
            payment_status,
            guard_terminal=self.config.guard_terminal_status,
        )

        log_webhook_event(
            logger,
            notification.invoice_number,
            notification.transaction_status,
            payment_status=payment_status.value,
            result=outcome.value,
        )

        return NotificationAck(
            invoice_number=notification.invoice_number,
            payment_status=payment_status,
            processing_result=outcome,
        )


def _truncate(payload: Any, limit: int = 500) -> str:
    try:
        text = json.dumps(payload, default=str)
    except (TypeError, ValueError):
        text = repr(payload)
    return text[:limit]
