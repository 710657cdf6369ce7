"""Contract tests for the booking lookup endpoints.

Test categories:
- GET /api/bookings/slots (public)
- GET /api/bookings/{booking_id} (owner only)
- GET /api/ping
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from starlette.status import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_401_UNAUTHORIZED,
    HTTP_403_FORBIDDEN,
    HTTP_404_NOT_FOUND,
)

from courtbook.models import BookingCreate, BookingPaymentStatus
from courtbook_api.dependencies import get_booking_store
from courtbook_api.main import app

AUTH_HEADERS = {"x-user-sub": "user-andi"}


@pytest.fixture
def client(create_tables: None) -> Generator[TestClient, None, None]:
    """Test client with three bookings on 19 Oktober 2026."""
    store = get_booking_store()
    for booking_id, slot, status in [
        ("b1", "08:00-09:00", BookingPaymentStatus.WAITING_PAYMENT),
        ("b2", "09:00-10:00", BookingPaymentStatus.PAID),
        ("b3", "10:00-11:00", BookingPaymentStatus.EXPIRED),
    ]:
        store.create_booking(
            BookingCreate(
                user_id="user-andi",
                court_label="Lapangan A",
                booking_date="19 Oktober 2026",
                time_slot=slot,
                amount=200000,
            ),
            booking_id=booking_id,
        )
        store.update_payment_status(booking_id, status)

    yield TestClient(app)
    app.dependency_overrides.clear()


class TestBookedSlots:
    """Occupied slots for the booking page."""

    def test_lists_held_slots(self, client):
        response = client.get("/api/bookings/slots", params={"date": "19 Oktober 2026"})

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["date"] == "19 Oktober 2026"
        assert sorted(s["time_slot"] for s in data["slots"]) == ["08:00-09:00", "09:00-10:00"]

    def test_empty_date(self, client):
        response = client.get("/api/bookings/slots", params={"date": "20 Oktober 2026"})

        assert response.status_code == HTTP_200_OK
        assert response.json()["slots"] == []

    def test_date_is_required(self, client):
        response = client.get("/api/bookings/slots")

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "ERR_001"


class TestGetBooking:
    """Booking status for the dashboard."""

    def test_owner_reads_booking(self, client):
        response = client.get("/api/bookings/b2", headers=AUTH_HEADERS)

        assert response.status_code == HTTP_200_OK
        data = response.json()
        assert data["booking_id"] == "b2"
        assert data["payment_status"] == "paid"
        assert data["amount"] == 200000

    def test_requires_identity(self, client):
        response = client.get("/api/bookings/b1")
        assert response.status_code == HTTP_401_UNAUTHORIZED

    def test_other_user(self, client):
        response = client.get("/api/bookings/b1", headers={"x-user-sub": "someone-else"})
        assert response.status_code == HTTP_403_FORBIDDEN

    def test_not_found(self, client):
        response = client.get("/api/bookings/nope", headers=AUTH_HEADERS)

        assert response.status_code == HTTP_404_NOT_FOUND
        assert response.json()["error_code"] == "ERR_003"

    def test_admin_row_without_owner(self, client):
        get_booking_store().db.put_item(
            "bookings",
            {
                "booking_id": "adm-1",
                "court_label": "Lapangan B",
                "booking_date": "19 Oktober 2026",
                "time_slot": "10:00-11:00",
                "amount": 150000,
                "payment_status": "paid",
            },
        )

        response = client.get("/api/bookings/adm-1", headers=AUTH_HEADERS)

        assert response.status_code == HTTP_403_FORBIDDEN


class TestPing:
    """Health check."""

    def test_ping(self, client):
        response = client.get("/api/ping")

        assert response.status_code == HTTP_200_OK
        assert response.json()["status"] == "ok"
        assert "X-Correlation-ID" in response.headers
