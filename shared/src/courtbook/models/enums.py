"""Enumeration types for Courtbook data models."""

from enum import Enum


class BookingPaymentStatus(str, Enum):
    """Payment status of a booking.

    pending -> waiting_payment -> (paid | failed | expired)
    """

    PENDING = "pending"
    WAITING_PAYMENT = "waiting_payment"
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        """True for statuses that only an admin may change again."""
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset(
    {
        BookingPaymentStatus.PAID,
        BookingPaymentStatus.FAILED,
        BookingPaymentStatus.EXPIRED,
    }
)


class TransactionStatus(str, Enum):
    """Transaction status values reported by DOKU notifications."""

    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"


class UpdateOutcome(str, Enum):
    """Result of a payment status write against the booking store."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"  # Row already terminal, guard kept it
    NOT_FOUND = "not_found"
