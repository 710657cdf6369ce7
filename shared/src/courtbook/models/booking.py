"""Booking model for court reservations."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import BookingPaymentStatus


class Booking(BaseModel):
    """A court reservation for one date and time slot.

    Amounts are stored in the smallest currency unit (IDR has no minor unit,
    so 200000 means Rp 200.000). The booking_id doubles as the DOKU
    invoice number.
    """

    model_config = ConfigDict(strict=True)

    booking_id: str = Field(..., description="Unique booking ID / invoice number")
    user_id: str = Field(..., description="Customer who made the booking")
    court_label: str = Field(..., description="Human-readable court name")
    booking_date: str = Field(..., description="Booking date as shown to the customer")
    time_slot: str = Field(..., description="Time slot, e.g. 08:00-09:00")
    amount: int = Field(..., ge=1, description="Amount in the smallest currency unit")
    payment_status: BookingPaymentStatus = Field(
        default=BookingPaymentStatus.PENDING,
        description="Payment status",
    )
    created_at: datetime | None = Field(
        default=None, description="Creation timestamp (missing on some admin-panel rows)"
    )
    updated_at: datetime | None = Field(
        default=None, description="Last status change timestamp"
    )


class BookingCreate(BaseModel):
    """Data required to insert a new booking row."""

    model_config = ConfigDict(strict=True)

    user_id: str = Field(..., min_length=1)
    court_label: str = Field(..., min_length=1)
    booking_date: str = Field(..., min_length=1)
    time_slot: str = Field(..., min_length=1)
    amount: int = Field(..., ge=1)


class BookedSlot(BaseModel):
    """A slot that is taken (or being paid for) on a given date."""

    model_config = ConfigDict(strict=True)

    court_label: str
    time_slot: str
    payment_status: BookingPaymentStatus
