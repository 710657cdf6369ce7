"""API models for payment endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from courtbook.models import BookedSlot, PaymentInitiation


class PaymentInitiateRequest(BaseModel):
    """Request from the booking page to start a DOKU checkout.

    Field names follow the frontend (camelCase); snake_case is accepted too.
    bookingId is optional: without it a new booking ID is generated.
    """

    model_config = ConfigDict(
        strict=True,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "bookingId": "b1",
                    "amount": 200000,
                    "courtLabel": "Lapangan A",
                    "date": "19 Oktober 2026",
                    "timeSlot": "08:00-09:00",
                }
            ]
        },
    )

    booking_id: str | None = Field(default=None, alias="bookingId")
    amount: int | None = Field(default=None, description="Amount in rupiah")
    court_label: str | None = Field(default=None, alias="courtLabel")
    date: str | None = Field(default=None)
    time_slot: str | None = Field(default=None, alias="timeSlot")

    def to_initiation(self) -> PaymentInitiation:
        return PaymentInitiation(
            booking_id=self.booking_id,
            amount=self.amount,
            court_label=self.court_label,
            date=self.date,
            time_slot=self.time_slot,
        )


class BookedSlotsResponse(BaseModel):
    """Occupied slots for one date."""

    model_config = ConfigDict(strict=True)

    date: str
    slots: list[BookedSlot] = Field(default_factory=list)
