"""Pydantic models for Courtbook data entities."""

from .booking import BookedSlot, Booking, BookingCreate
from .enums import (
    TERMINAL_STATUSES,
    BookingPaymentStatus,
    TransactionStatus,
    UpdateOutcome,
)
from .errors import (
    BookingError,
    ConfigurationError,
    ErrorCode,
    ErrorResponse,
    ERROR_MESSAGES,
    ERROR_RECOVERY,
)
from .notification import (
    TRANSACTION_STATUS_MAP,
    DokuNotification,
    NotificationAck,
    map_transaction_status,
)
from .payment import (
    CustomerIdentity,
    DokuCustomer,
    DokuOrder,
    DokuPaymentTerms,
    GatewayResponse,
    ParsedError,
    PaymentInitiation,
    PaymentRedirect,
    PaymentRequest,
    RawError,
    SignedEnvelope,
)

__all__ = [
    # Enums
    "BookingPaymentStatus",
    "TERMINAL_STATUSES",
    "TransactionStatus",
    "UpdateOutcome",
    # Booking
    "Booking",
    "BookingCreate",
    "BookedSlot",
    # Payment
    "CustomerIdentity",
    "DokuCustomer",
    "DokuOrder",
    "DokuPaymentTerms",
    "GatewayResponse",
    "ParsedError",
    "PaymentInitiation",
    "PaymentRedirect",
    "PaymentRequest",
    "RawError",
    "SignedEnvelope",
    # Notification
    "DokuNotification",
    "NotificationAck",
    "TRANSACTION_STATUS_MAP",
    "map_transaction_status",
    # Errors
    "BookingError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorResponse",
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
]
