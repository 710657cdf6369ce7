"""Payment endpoints.

Provides REST endpoints for:
- Starting a DOKU hosted checkout for a booking (identity required)
"""

from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Request
from starlette.status import HTTP_200_OK

from courtbook.models import CustomerIdentity, PaymentRedirect
from courtbook.services.payment_orchestrator import PaymentOrchestrator
from courtbook_api.dependencies import get_payment_orchestrator
from courtbook_api.models.payments import PaymentInitiateRequest
from courtbook_api.security import require_identity

router = APIRouter(tags=["payments"])


def _request_origin(request: Request) -> str | None:
    """Site origin from the Origin header, falling back to Referer."""
    for header in ("origin", "referer"):
        value = request.headers.get(header)
        if not value:
            continue
        parts = urlsplit(value)
        if parts.scheme and parts.netloc:
            return f"{parts.scheme}://{parts.netloc}"
    return None


@router.post(
    "/payments/doku",
    summary="Start DOKU checkout",
    description="""
Create (or re-enter) a booking and start a DOKU hosted checkout for it.

**Requires an authenticated caller.**

The booking is stored as `pending` before DOKU is called and moves to
`waiting_payment` once a checkout URL is returned. The browser should
redirect to `payment_url`.

**Notes:**
- `bookingId` is used as the DOKU invoice number
- Re-entering an existing booking charges the stored amount
- Gateway outages keep the booking `pending` so payment can be retried
""",
    response_model=PaymentRedirect,
    status_code=HTTP_200_OK,
    responses={
        200: {"description": "Checkout created, redirect to payment_url"},
        400: {"description": "Missing or invalid fields"},
        401: {"description": "Caller identity required"},
        402: {"description": "DOKU rejected the payment request"},
        403: {"description": "Booking belongs to another user"},
        409: {"description": "Booking is already settled"},
        502: {"description": "DOKU returned an unusable response"},
        503: {"description": "DOKU or the booking store is unavailable"},
    },
)
async def initiate_doku_payment(
    body: PaymentInitiateRequest,
    request: Request,
    identity: CustomerIdentity = Depends(require_identity),
    orchestrator: PaymentOrchestrator = Depends(get_payment_orchestrator),
) -> PaymentRedirect:
    """Start a DOKU checkout for the caller's booking."""
    return await orchestrator.initiate(
        body.to_initiation(),
        identity,
        origin=_request_origin(request),
    )
