"""Correlation ID middleware for request tracing.

The ID is taken from X-Correlation-ID, or from DOKU's Request-Id header on
gateway notifications so a webhook log line can be matched to the DOKU
dashboard entry. Otherwise a new one is generated. Each request ends with
one access log line carrying the ID.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from courtbook.utils.logging import clear_correlation_id, get_logger, set_correlation_id

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
DOKU_REQUEST_ID_HEADER = "Request-Id"


def incoming_correlation_id(request: Request) -> str | None:
    """Caller-supplied correlation ID, if any."""
    return request.headers.get(CORRELATION_ID_HEADER) or request.headers.get(
        DOKU_REQUEST_ID_HEADER
    )


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Sets the correlation ID for the request and echoes it on the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = set_correlation_id(incoming_correlation_id(request))
        started = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers[CORRELATION_ID_HEADER] = correlation_id
            return response
        finally:
            logger.info(
                "%s %s -> %d (%.0fms)",
                request.method,
                request.url.path,
                status_code,
                (time.perf_counter() - started) * 1000,
            )
            clear_correlation_id()
