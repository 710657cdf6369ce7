"""Pytest configuration and fixtures for the court booking payment tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (bookings table + booking_date GSI)
- Gateway configuration with fake DOKU credentials
- A scripted DOKU endpoint on httpx.MockTransport
- A recording sleep so retry backoff never actually waits
"""

import json
import os
from collections.abc import Callable
from typing import Any, Generator

import boto3
import httpx
import pytest
from moto import mock_aws
from pydantic import SecretStr

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")
os.environ.setdefault("DYNAMODB_TABLE_PREFIX", "test-booking")
os.environ.setdefault("DOKU_CLIENT_ID", "MCH-TEST-0001")
os.environ.setdefault("DOKU_SECRET_KEY", "SK-test-secret")
os.environ.setdefault("DOKU_API_KEY", "AK-test-key")

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from courtbook.config import GatewayConfig, StoreConfig  # noqa: E402
from courtbook.models import CustomerIdentity  # noqa: E402
from courtbook.services.booking_store import BookingStore  # noqa: E402
from courtbook.services.doku_client import DokuClient  # noqa: E402
from courtbook.services.dynamodb import DynamoDBService  # noqa: E402

TEST_CLIENT_ID = "MCH-TEST-0001"
TEST_SECRET_KEY = "SK-test-secret"
TEST_PAYMENT_URL = "https://sandbox.doku.com/checkout-link-v2/test123"

BOOKINGS_TABLE_DEFINITION: dict[str, Any] = {
    "TableName": "test-booking-bookings",
    "KeySchema": [{"AttributeName": "booking_id", "KeyType": "HASH"}],
    "AttributeDefinitions": [
        {"AttributeName": "booking_id", "AttributeType": "S"},
        {"AttributeName": "booking_date", "AttributeType": "S"},
    ],
    "GlobalSecondaryIndexes": [
        {
            "IndexName": "booking_date-index",
            "KeySchema": [{"AttributeName": "booking_date", "KeyType": "HASH"}],
            "Projection": {"ProjectionType": "ALL"},
        },
    ],
    "BillingMode": "PAY_PER_REQUEST",
}


# === Singleton Reset ===


@pytest.fixture(autouse=True)
def reset_service_singletons() -> Generator[None, None, None]:
    """Reset cached services before and after each test.

    Tests using mock_aws need a fresh DynamoDB resource created inside
    the mock context rather than one from a previous test.
    """
    from courtbook_api.dependencies import reset_services

    reset_services()
    yield
    reset_services()


# === DynamoDB Fixtures ===


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"


@pytest.fixture
def dynamodb_client(aws_credentials: None) -> Generator[Any, None, None]:
    """Create a mocked DynamoDB client."""
    with mock_aws():
        client = boto3.client("dynamodb", region_name="eu-west-1")
        yield client


@pytest.fixture
def create_tables(dynamodb_client: Any) -> None:
    """Create the bookings table for testing."""
    dynamodb_client.create_table(**BOOKINGS_TABLE_DEFINITION)


# === Configuration Fixtures ===


@pytest.fixture
def gateway_config() -> GatewayConfig:
    """Gateway configuration with fake credentials and no real waits."""
    return GatewayConfig(
        client_id=TEST_CLIENT_ID,
        api_key=SecretStr("AK-test-key"),
        secret_key=SecretStr(TEST_SECRET_KEY),
        frontend_url="https://courts.example.com",
        store=StoreConfig(table_prefix="test-booking", region="eu-west-1"),
    )


@pytest.fixture
def booking_store(create_tables: None, gateway_config: GatewayConfig) -> BookingStore:
    """BookingStore on the mocked bookings table."""
    return BookingStore(db=DynamoDBService(gateway_config.store))


@pytest.fixture
def customer() -> CustomerIdentity:
    """The signed-in customer."""
    return CustomerIdentity(id="user-andi", email="andi@example.com", name="Andi Wijaya")


# === DOKU Gateway Fixtures ===


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class ScriptedDoku:
    """DOKU checkout endpoint answering from a script.

    Each script entry is an httpx.Response or an exception instance to
    raise for that attempt. The last entry repeats once the script runs out.
    """

    def __init__(self, script: list[httpx.Response | Exception]) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        outcome = self.script[index]
        if isinstance(outcome, Exception):
            raise outcome
        # Fresh copy so a repeated entry can be sent more than once
        return httpx.Response(outcome.status_code, headers=outcome.headers, content=outcome.content)

    @property
    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]


def _doku_success(payment_url: str = TEST_PAYMENT_URL) -> httpx.Response:
    """A DOKU checkout success response."""
    return httpx.Response(
        200,
        json={
            "message": ["SUCCESS"],
            "response": {
                "order": {"invoice_number": "ignored"},
                "payment": {"url": payment_url, "token_id": "tok-1"},
            },
        },
    )


@pytest.fixture
def doku_success() -> Callable[..., httpx.Response]:
    """Factory for DOKU checkout success responses."""
    return _doku_success


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    """Recording async sleep for retry backoff."""
    return RecordingSleep()


@pytest.fixture
def make_doku_client(
    gateway_config: GatewayConfig,
    recording_sleep: RecordingSleep,
) -> Callable[..., tuple[DokuClient, ScriptedDoku]]:
    """Factory building a DokuClient against a scripted DOKU endpoint."""

    def _make(
        *script: httpx.Response | Exception,
        config: GatewayConfig | None = None,
    ) -> tuple[DokuClient, ScriptedDoku]:
        doku = ScriptedDoku(list(script) or [_doku_success()])
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(doku))
        client = DokuClient(
            config or gateway_config,
            http_client=http_client,
            sleep=recording_sleep,
        )
        return client, doku

    return _make
