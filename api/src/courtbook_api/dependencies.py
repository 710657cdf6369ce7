"""FastAPI dependency providers for the payment core services.

Services are built lazily from one GatewayConfig and cached with
@lru_cache, so a warm Lambda container reuses them across requests.

Service Dependency Graph:
    GatewayConfig (load_config)
        ├── DynamoDBService
        │       └── BookingStore
        │               ├── PaymentOrchestrator ── DokuClient
        │               └── WebhookReconciler
        └── DokuClient

Testing:
    Override get_config (app.dependency_overrides) or call reset_services()
    between tests to drop cached instances.
"""

from functools import lru_cache

from courtbook.config import GatewayConfig, load_config
from courtbook.services.booking_store import BookingStore
from courtbook.services.doku_client import DokuClient
from courtbook.services.dynamodb import get_dynamodb_service
from courtbook.services.payment_orchestrator import PaymentOrchestrator
from courtbook.services.webhook_handler import WebhookReconciler


@lru_cache
def get_config() -> GatewayConfig:
    """Load configuration once per process."""
    return load_config()


@lru_cache
def get_booking_store() -> BookingStore:
    """Get cached BookingStore on the DynamoDB singleton."""
    return BookingStore(db=get_dynamodb_service(get_config().store))


@lru_cache
def get_doku_client() -> DokuClient:
    """Get cached DokuClient."""
    return DokuClient(get_config())


@lru_cache
def get_payment_orchestrator() -> PaymentOrchestrator:
    """Get cached PaymentOrchestrator."""
    return PaymentOrchestrator(
        store=get_booking_store(),
        gateway=get_doku_client(),
        config=get_config(),
    )


@lru_cache
def get_webhook_reconciler() -> WebhookReconciler:
    """Get cached WebhookReconciler."""
    return WebhookReconciler(store=get_booking_store(), config=get_config())


def reset_services() -> None:
    """Clear all cached service instances, including the DynamoDB singleton."""
    from courtbook.services.dynamodb import reset_dynamodb_service
    from courtbook.services.ssm_service import get_ssm_service

    get_config.cache_clear()
    get_booking_store.cache_clear()
    get_doku_client.cache_clear()
    get_payment_orchestrator.cache_clear()
    get_webhook_reconciler.cache_clear()

    reset_dynamodb_service()
    get_ssm_service.cache_clear()
