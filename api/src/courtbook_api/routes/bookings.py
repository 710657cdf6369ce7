"""Booking lookup endpoints.

Provides REST endpoints for:
- Occupied slots for a date (public), used by the booking page to grey
  out taken slots
- A single booking's status (owner only), polled by the dashboard after
  DOKU redirects the customer back
"""

from fastapi import APIRouter, Depends, Query
from starlette.status import HTTP_200_OK

from courtbook.models import Booking, BookingError, CustomerIdentity, ErrorCode
from courtbook.services.booking_store import BookingStore
from courtbook_api.dependencies import get_booking_store
from courtbook_api.models.payments import BookedSlotsResponse
from courtbook_api.security import require_identity

router = APIRouter(tags=["bookings"])


@router.get(
    "/bookings/slots",
    summary="Occupied slots for a date",
    description="""
List the court/time slots already held on a date.

Bookings that failed or expired release their slot and are not listed.
""",
    response_model=BookedSlotsResponse,
    status_code=HTTP_200_OK,
)
async def get_booked_slots(
    date: str = Query(..., min_length=1, description="Booking date as shown on the booking page"),
    store: BookingStore = Depends(get_booking_store),
) -> BookedSlotsResponse:
    """Return the occupied slots for one date."""
    return BookedSlotsResponse(date=date, slots=store.booked_slots(date))


@router.get(
    "/bookings/{booking_id}",
    summary="Get booking",
    description="""
Get a booking and its payment status.

**Requires an authenticated caller. Only the booking owner can read it.**
""",
    response_model=Booking,
    status_code=HTTP_200_OK,
    responses={
        200: {"description": "Booking found"},
        401: {"description": "Caller identity required"},
        403: {"description": "Booking belongs to another user"},
        404: {"description": "Booking not found"},
    },
)
async def get_booking(
    booking_id: str,
    identity: CustomerIdentity = Depends(require_identity),
    store: BookingStore = Depends(get_booking_store),
) -> Booking:
    """Return the caller's booking."""
    booking = store.get_booking(booking_id)
    if booking is None:
        raise BookingError(
            code=ErrorCode.BOOKING_NOT_FOUND,
            details={"booking_id": booking_id},
        )
    if booking.user_id != identity.id:
        raise BookingError(
            code=ErrorCode.FORBIDDEN,
            details={"booking_id": booking_id},
        )
    return booking
