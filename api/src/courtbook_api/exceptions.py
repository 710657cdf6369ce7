"""FastAPI exception handlers for converting BookingError to HTTP responses.

The ErrorCode-to-HTTP status mapping:
- 400 Bad Request: invalid input, malformed notifications
- 401 Unauthorized: missing identity, bad notification signature
- 402 Payment Required: DOKU rejected the payment
- 403 Forbidden: booking belongs to someone else
- 404 Not Found: unknown booking
- 409 Conflict: booking already settled
- 502 Bad Gateway: DOKU answered with something unusable
- 503 Service Unavailable: DOKU or the booking store is down (retry later)

Usage:
    from courtbook_api.exceptions import register_exception_handlers
    register_exception_handlers(app)
"""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_402_PAYMENT_REQUIRED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
    HTTP_409_CONFLICT,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_502_BAD_GATEWAY,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from courtbook.models import BookingError, ErrorCode, ErrorResponse

logger = logging.getLogger(__name__)

ERROR_CODE_TO_HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.INVALID_REQUEST: HTTP_400_BAD_REQUEST,
    ErrorCode.MALFORMED_NOTIFICATION: HTTP_400_BAD_REQUEST,
    ErrorCode.UNAUTHORIZED: HTTP_401_UNAUTHORIZED,
    ErrorCode.INVALID_NOTIFICATION_SIGNATURE: HTTP_401_UNAUTHORIZED,
    ErrorCode.GATEWAY_REJECTED: HTTP_402_PAYMENT_REQUIRED,
    ErrorCode.FORBIDDEN: HTTP_403_FORBIDDEN,
    ErrorCode.BOOKING_NOT_FOUND: HTTP_404_NOT_FOUND,
    ErrorCode.BOOKING_NOT_PAYABLE: HTTP_409_CONFLICT,
    ErrorCode.GATEWAY_PROTOCOL_ERROR: HTTP_502_BAD_GATEWAY,
    ErrorCode.GATEWAY_UNAVAILABLE: HTTP_503_SERVICE_UNAVAILABLE,
    ErrorCode.STORE_FAILURE: HTTP_503_SERVICE_UNAVAILABLE,
}


def get_http_status_for_error(code: ErrorCode) -> int:
    """Get HTTP status code for an ErrorCode, defaulting to 400."""
    return ERROR_CODE_TO_HTTP_STATUS.get(code, HTTP_400_BAD_REQUEST)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render a BookingError as an ErrorResponse with the mapped status."""
    return JSONResponse(
        status_code=get_http_status_for_error(exc.code),
        content=exc.to_response().model_dump(mode="json"),
    )


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures as INVALID_REQUEST (400)."""
    fields = [
        ".".join(str(part) for part in error.get("loc", []) if part != "body")
        for error in exc.errors()
    ]
    response = ErrorResponse.from_code(
        ErrorCode.INVALID_REQUEST,
        details={"fields": ", ".join(f for f in fields if f)},
    )
    return JSONResponse(
        status_code=HTTP_400_BAD_REQUEST,
        content=response.model_dump(mode="json"),
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for uncaught exceptions; never exposes internals."""
    logger.exception("Unhandled exception: %s", exc)

    return JSONResponse(
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": "An unexpected error occurred",
            "error_code": "ERR_INTERNAL",
            "recovery": "Please try again later or contact support",
            "details": None,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(BookingError, booking_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
