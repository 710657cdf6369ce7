"""DOKU payment notification models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingPaymentStatus, TransactionStatus, UpdateOutcome

# DOKU transaction status -> booking payment status. Anything else is
# treated as still pending; never assume success.
TRANSACTION_STATUS_MAP: dict[str, BookingPaymentStatus] = {
    TransactionStatus.SUCCESS.value: BookingPaymentStatus.PAID,
    TransactionStatus.FAILED.value: BookingPaymentStatus.FAILED,
    TransactionStatus.EXPIRED.value: BookingPaymentStatus.EXPIRED,
}


def map_transaction_status(status: Any) -> BookingPaymentStatus:
    """Map a DOKU transaction.status value to a booking payment status."""
    if isinstance(status, str):
        return TRANSACTION_STATUS_MAP.get(status, BookingPaymentStatus.PENDING)
    return BookingPaymentStatus.PENDING


class DokuNotification(BaseModel):
    """The parts of a DOKU notification the reconciler needs.

    Parsed leniently from the raw payload; DOKU sends many more fields.
    """

    invoice_number: str | None = None
    transaction_status: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "DokuNotification":
        """Extract order.invoice_number and transaction.status.

        Never raises on odd shapes; missing pieces come back as None.
        """
        if not isinstance(payload, dict):
            return cls()

        order = payload.get("order")
        transaction = payload.get("transaction")

        invoice_number = order.get("invoice_number") if isinstance(order, dict) else None
        status = transaction.get("status") if isinstance(transaction, dict) else None

        return cls(
            invoice_number=str(invoice_number) if invoice_number not in (None, "") else None,
            transaction_status=str(status) if status is not None else None,
        )


class NotificationAck(BaseModel):
    """Acknowledgement returned to DOKU for a reconciled notification."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    invoice_number: str = Field(..., description="Booking ID from the notification")
    payment_status: BookingPaymentStatus = Field(
        ..., description="Status the notification maps to"
    )
    processing_result: UpdateOutcome = Field(
        ..., description="updated, unchanged (already settled), or not_found"
    )
