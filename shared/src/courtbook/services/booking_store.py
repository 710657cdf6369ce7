"""Booking store backed by the DynamoDB bookings table.

The store is shared with the admin panel, which writes the same rows
directly, so nothing here assumes it is the only writer. Each booking row
is updated atomically on its own; there are no cross-row transactions.
"""

import datetime as dt
import logging
import uuid
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from courtbook.models import (
    BookedSlot,
    Booking,
    BookingCreate,
    BookingError,
    BookingPaymentStatus,
    ErrorCode,
    UpdateOutcome,
)
from courtbook.services.dynamodb import DynamoDBService

logger = logging.getLogger(__name__)

# Statuses that no longer hold a slot
RELEASED_STATUSES = {BookingPaymentStatus.FAILED, BookingPaymentStatus.EXPIRED}


class BookingStore:
    """Reads and writes Booking rows."""

    BOOKINGS_TABLE = "bookings"
    DATE_INDEX = "booking_date-index"

    def __init__(self, db: DynamoDBService) -> None:
        """Initialize booking store.

        Args:
            db: DynamoDB service instance
        """
        self.db = db

    @staticmethod
    def generate_booking_id() -> str:
        """Generate a store-side booking ID like BK-3F9A0C21B7D4."""
        return f"BK-{uuid.uuid4().hex[:12].upper()}"

    def create_booking(self, data: BookingCreate, booking_id: str | None = None) -> Booking:
        """Insert a new booking in pending status.

        Args:
            data: Booking details
            booking_id: Caller-chosen ID; generated when omitted

        Returns:
            The stored Booking.

        Raises:
            BookingError: STORE_FAILURE on persistence errors, INVALID_REQUEST
                if a booking with that ID already exists.
        """
        booking = Booking(
            booking_id=booking_id or self.generate_booking_id(),
            user_id=data.user_id,
            court_label=data.court_label,
            booking_date=data.booking_date,
            time_slot=data.time_slot,
            amount=data.amount,
            payment_status=BookingPaymentStatus.PENDING,
            created_at=dt.datetime.now(dt.UTC),
        )

        try:
            created = self.db.put_item(
                self.BOOKINGS_TABLE,
                self._booking_to_item(booking),
                condition_expression="attribute_not_exists(booking_id)",
            )
        except (ClientError, BotoCoreError) as e:
            raise self._store_failure("create_booking", booking.booking_id, e) from e

        if not created:
            raise BookingError(
                code=ErrorCode.INVALID_REQUEST,
                details={"booking_id": booking.booking_id},
                message="A booking with this ID already exists",
            )

        logger.info("Booking %s created (pending)", booking.booking_id)
        return booking

    def get_booking(self, booking_id: str) -> Booking | None:
        """Get a booking by ID, or None if it does not exist."""
        try:
            item = self.db.get_item(self.BOOKINGS_TABLE, {"booking_id": booking_id})
        except (ClientError, BotoCoreError) as e:
            raise self._store_failure("get_booking", booking_id, e) from e
        return self._item_to_booking(item) if item else None

    def update_payment_status(
        self,
        booking_id: str,
        status: BookingPaymentStatus,
        *,
        guard_terminal: bool = True,
    ) -> UpdateOutcome:
        """Set a booking's payment status.

        The write never creates a row. With guard_terminal the write is a
        compare-and-set that only applies while the stored status is not
        terminal; a settled booking is left as it is.

        Args:
            booking_id: Booking to update
            status: New payment status
            guard_terminal: Skip the write if the booking is already settled

        Returns:
            UPDATED, UNCHANGED (guard kept a terminal row) or NOT_FOUND.

        Raises:
            BookingError: STORE_FAILURE on persistence errors.
        """
        condition = "attribute_exists(booking_id)"
        values: dict[str, Any] = {
            ":status": status.value,
            ":now": dt.datetime.now(dt.UTC).isoformat(),
        }
        if guard_terminal:
            condition += " AND NOT (#ps IN (:paid, :failed, :expired))"
            values.update(
                {
                    ":paid": BookingPaymentStatus.PAID.value,
                    ":failed": BookingPaymentStatus.FAILED.value,
                    ":expired": BookingPaymentStatus.EXPIRED.value,
                }
            )

        try:
            attrs = self.db.update_item(
                self.BOOKINGS_TABLE,
                {"booking_id": booking_id},
                "SET #ps = :status, updated_at = :now",
                values,
                {"#ps": "payment_status"},
                condition_expression=condition,
            )
            if attrs is not None:
                return UpdateOutcome.UPDATED

            # Condition failed: either the row is missing or it is settled
            current = self.db.get_item(self.BOOKINGS_TABLE, {"booking_id": booking_id})
        except (ClientError, BotoCoreError) as e:
            raise self._store_failure("update_payment_status", booking_id, e) from e

        if current is None:
            return UpdateOutcome.NOT_FOUND

        logger.info(
            "Booking %s already %s, not changing to %s",
            booking_id,
            current.get("payment_status"),
            status.value,
        )
        return UpdateOutcome.UNCHANGED

    def list_bookings_for_date(self, booking_date: str) -> list[Booking]:
        """All bookings on a date, via the booking_date GSI."""
        try:
            items = self.db.query_by_gsi(
                self.BOOKINGS_TABLE,
                self.DATE_INDEX,
                "booking_date",
                booking_date,
            )
        except (ClientError, BotoCoreError) as e:
            raise self._store_failure("list_bookings_for_date", booking_date, e) from e

        bookings = []
        for item in items:
            try:
                bookings.append(self._item_to_booking(item))
            except BookingError:
                # Logged in _item_to_booking; one bad row must not hide the rest
                continue
        return bookings

    def booked_slots(self, booking_date: str) -> list[BookedSlot]:
        """Slots on a date that are paid for or still being paid for."""
        return [
            BookedSlot(
                court_label=booking.court_label,
                time_slot=booking.time_slot,
                payment_status=booking.payment_status,
            )
            for booking in self.list_bookings_for_date(booking_date)
            if booking.payment_status not in RELEASED_STATUSES
        ]

    # Conversion helpers

    @staticmethod
    def _store_failure(operation: str, key: str, error: Exception) -> BookingError:
        logger.error("Booking store %s failed for %s: %s", operation, key, error)
        return BookingError(
            code=ErrorCode.STORE_FAILURE,
            details={"operation": operation},
        )

    def _booking_to_item(self, booking: Booking) -> dict[str, Any]:
        """Convert Booking model to DynamoDB item."""
        item: dict[str, Any] = {
            "booking_id": booking.booking_id,
            "user_id": booking.user_id,
            "court_label": booking.court_label,
            "booking_date": booking.booking_date,
            "time_slot": booking.time_slot,
            "amount": booking.amount,
            "payment_status": booking.payment_status.value,
        }
        if booking.created_at:
            item["created_at"] = booking.created_at.isoformat()
        if booking.updated_at:
            item["updated_at"] = booking.updated_at.isoformat()
        return item

    def _item_to_booking(self, item: dict[str, Any]) -> Booking:
        """Convert DynamoDB item to Booking model.

        Rows written by the admin panel may lack user_id, created_at or
        payment_status; those get defaults. A row without a usable amount or
        with an unknown status cannot be paid for and is a STORE_FAILURE.
        """
        booking_id = item["booking_id"]
        try:
            return Booking(
                booking_id=booking_id,
                user_id=item.get("user_id", ""),
                court_label=item.get("court_label", ""),
                booking_date=item.get("booking_date", ""),
                time_slot=item.get("time_slot", ""),
                amount=int(item["amount"]),
                payment_status=BookingPaymentStatus(
                    item.get("payment_status", BookingPaymentStatus.PENDING.value)
                ),
                created_at=_parse_timestamp(item.get("created_at")),
                updated_at=_parse_timestamp(item.get("updated_at")),
            )
        except (KeyError, TypeError, ValueError) as e:
            logger.error("Booking %s has an unreadable row: %s", booking_id, e)
            raise BookingError(
                code=ErrorCode.STORE_FAILURE,
                details={"booking_id": booking_id, "reason": "malformed booking row"},
            ) from e


def _parse_timestamp(value: Any) -> dt.datetime | None:
    return dt.datetime.fromisoformat(value) if value else None
