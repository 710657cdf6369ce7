"""Integration tests for the full DOKU payment flow through the API.

Walks a booking from checkout initiation to settlement:
1. POST /api/payments/doku (booking stored pending, DOKU called, waiting_payment)
2. POST /api/webhooks/doku (DOKU reports the transaction result)
3. GET /api/bookings/{booking_id} (dashboard sees the final status)

DynamoDB runs on moto; DOKU is an httpx.MockTransport.
"""

from typing import Any, Generator

import httpx
import pytest
from fastapi.testclient import TestClient
from starlette.status import HTTP_200_OK, HTTP_400_BAD_REQUEST, HTTP_503_SERVICE_UNAVAILABLE

from courtbook.models import BookingPaymentStatus
from courtbook.services.doku_client import DokuClient
from courtbook.services.payment_orchestrator import PaymentOrchestrator
from courtbook_api.dependencies import get_booking_store, get_config, get_payment_orchestrator
from courtbook_api.main import app

AUTH_HEADERS = {"x-user-sub": "user-andi", "x-user-email": "andi@example.com"}

PAYMENT_BODY: dict[str, Any] = {
    "bookingId": "b1",
    "amount": 200000,
    "courtLabel": "Lapangan A",
    "date": "19 Oktober 2026",
    "timeSlot": "08:00-09:00",
}

PAYMENT_URL = "https://sandbox.doku.com/checkout-link-v2/flow-b1"


class ObservingDoku:
    """DOKU endpoint that records the booking status it sees on each call."""

    def __init__(self, statuses: list[int]) -> None:
        self.statuses = statuses
        self.calls = 0
        self.seen_booking_status: list[BookingPaymentStatus | None] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        booking = get_booking_store().get_booking("b1")
        self.seen_booking_status.append(booking.payment_status if booking else None)

        status = self.statuses[min(self.calls, len(self.statuses) - 1)]
        self.calls += 1
        if status != 200:
            return httpx.Response(status, json={"message": ["Service Unavailable"]})
        return httpx.Response(200, json={"response": {"payment": {"url": PAYMENT_URL}}})


@pytest.fixture
def client(create_tables: None) -> Generator[TestClient, None, None]:
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_doku(recording_sleep):
    """Wire the API to an ObservingDoku answering with the given statuses."""

    def _use(*statuses: int) -> ObservingDoku:
        doku = ObservingDoku(list(statuses) or [200])
        gateway = DokuClient(
            get_config(),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(doku)),
            sleep=recording_sleep,
        )
        app.dependency_overrides[get_payment_orchestrator] = lambda: PaymentOrchestrator(
            store=get_booking_store(), gateway=gateway, config=get_config()
        )
        return doku

    return _use


def _booking_status(client: TestClient) -> str:
    response = client.get("/api/bookings/b1", headers=AUTH_HEADERS)
    assert response.status_code == HTTP_200_OK
    return response.json()["payment_status"]


class TestPaymentFlow:
    """End-to-end scenarios."""

    def test_happy_path_to_paid(self, client, use_doku, recording_sleep):
        doku = use_doku(200)

        response = client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        assert response.status_code == HTTP_200_OK
        assert response.json()["payment_url"] == PAYMENT_URL
        # Booking row existed (pending) before DOKU was called
        assert doku.seen_booking_status == [BookingPaymentStatus.PENDING]
        assert recording_sleep.delays == []
        assert _booking_status(client) == "waiting_payment"

        webhook = client.post(
            "/api/webhooks/doku",
            json={"order": {"invoice_number": "b1"}, "transaction": {"status": "SUCCESS"}},
        )

        assert webhook.status_code == HTTP_200_OK
        assert _booking_status(client) == "paid"

    def test_gateway_recovers_after_two_503s(self, client, use_doku, recording_sleep):
        doku = use_doku(503, 503, 200)

        response = client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        assert response.status_code == HTTP_200_OK
        assert response.json()["payment_url"] == PAYMENT_URL
        assert doku.calls == 3
        assert recording_sleep.delays == [2.0, 4.0]
        assert _booking_status(client) == "waiting_payment"

    def test_outage_then_retry_then_expiry(self, client, use_doku):
        use_doku(503)

        first = client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        assert first.status_code == HTTP_503_SERVICE_UNAVAILABLE
        assert _booking_status(client) == "pending"

        doku = use_doku(200)
        second = client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        assert second.status_code == HTTP_200_OK
        assert doku.seen_booking_status == [BookingPaymentStatus.PENDING]

        client.post(
            "/api/webhooks/doku",
            json={"order": {"invoice_number": "b1"}, "transaction": {"status": "EXPIRED"}},
        )
        assert _booking_status(client) == "expired"

        slots = client.get("/api/bookings/slots", params={"date": "19 Oktober 2026"})
        assert slots.json()["slots"] == []

    def test_notification_without_invoice_writes_nothing(self, client, use_doku):
        use_doku(200)
        client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        response = client.post(
            "/api/webhooks/doku", json={"order": {}, "transaction": {"status": "SUCCESS"}}
        )

        assert response.status_code == HTTP_400_BAD_REQUEST
        assert _booking_status(client) == "waiting_payment"

    def test_paid_booking_cannot_be_paid_again(self, client, use_doku):
        doku = use_doku(200)
        client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)
        client.post(
            "/api/webhooks/doku",
            json={"order": {"invoice_number": "b1"}, "transaction": {"status": "SUCCESS"}},
        )

        again = client.post("/api/payments/doku", json=PAYMENT_BODY, headers=AUTH_HEADERS)

        assert again.status_code == 409
        assert doku.calls == 1
        assert _booking_status(client) == "paid"
