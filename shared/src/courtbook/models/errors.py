"""Standard error codes for the Courtbook payment core.

Every failure surfaced to a caller (booking UI or DOKU) is a BookingError
carrying one of these codes, so the HTTP layer can render a consistent body.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Standard error codes."""

    # Booking / caller errors
    INVALID_REQUEST = "ERR_001"
    UNAUTHORIZED = "ERR_002"
    BOOKING_NOT_FOUND = "ERR_003"
    BOOKING_NOT_PAYABLE = "ERR_004"
    FORBIDDEN = "ERR_005"

    # Gateway errors
    GATEWAY_REJECTED = "ERR_PAY_001"
    GATEWAY_PROTOCOL_ERROR = "ERR_PAY_002"
    GATEWAY_UNAVAILABLE = "ERR_PAY_003"

    # Webhook errors
    MALFORMED_NOTIFICATION = "ERR_HOOK_001"
    INVALID_NOTIFICATION_SIGNATURE = "ERR_HOOK_002"

    # Persistence
    STORE_FAILURE = "ERR_STORE_001"


# Human-readable error messages
ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Missing or invalid booking details",
    ErrorCode.UNAUTHORIZED: "Authentication required",
    ErrorCode.BOOKING_NOT_FOUND: "Booking not found",
    ErrorCode.BOOKING_NOT_PAYABLE: "Booking is not in a payable state",
    ErrorCode.FORBIDDEN: "Booking belongs to another customer",
    ErrorCode.GATEWAY_REJECTED: "Payment was rejected by the payment gateway",
    ErrorCode.GATEWAY_PROTOCOL_ERROR: "Payment gateway returned an unexpected response",
    ErrorCode.GATEWAY_UNAVAILABLE: "Payment gateway is unavailable",
    ErrorCode.MALFORMED_NOTIFICATION: "Missing invoice number in notification",
    ErrorCode.INVALID_NOTIFICATION_SIGNATURE: "Invalid notification signature",
    ErrorCode.STORE_FAILURE: "Booking storage is unavailable",
}

# Recovery suggestions shown alongside the message
ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.INVALID_REQUEST: "Check the amount, court, date and time slot and try again",
    ErrorCode.UNAUTHORIZED: "Log in and try again",
    ErrorCode.BOOKING_NOT_FOUND: "Verify the booking ID",
    ErrorCode.BOOKING_NOT_PAYABLE: "Check the booking status on your dashboard",
    ErrorCode.FORBIDDEN: "Use an account that owns this booking",
    ErrorCode.GATEWAY_REJECTED: "Review the payment details or contact support",
    ErrorCode.GATEWAY_PROTOCOL_ERROR: "Try again later or contact support",
    ErrorCode.GATEWAY_UNAVAILABLE: "Your booking is saved; retry the payment in a few minutes",
    ErrorCode.MALFORMED_NOTIFICATION: "Resend the notification with order.invoice_number",
    ErrorCode.INVALID_NOTIFICATION_SIGNATURE: "Verify the DOKU client ID and secret key",
    ErrorCode.STORE_FAILURE: "Retry the request later",
}


class ErrorResponse(BaseModel):
    """Standard error body returned by the API.

    `error` is the user-facing message the booking UI displays.
    """

    model_config = ConfigDict(strict=True)

    success: bool = False
    error: str
    error_code: ErrorCode
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error
            message: Override for the default message

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error=message or ERROR_MESSAGES[code],
            error_code=code,
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class BookingError(Exception):
    """Exception raised by booking and payment operations.

    Converted to an ErrorResponse by the API exception handlers.
    """

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
        message: Optional[str] = None,
    ):
        self.code = code
        self.message = message or ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse."""
        return ErrorResponse.from_code(self.code, self.details, self.message)


class ConfigurationError(Exception):
    """Raised when required gateway or store configuration is missing."""

    pass
