"""Explicit configuration for the payment core.

Business logic never reads the environment. load_config() runs once at the
edge (API startup, scripts, tests) and the resulting GatewayConfig is passed
to each component's constructor, so every component can be built with fake
credentials in tests.
"""

import logging
import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, SecretStr

from courtbook.models.errors import ConfigurationError
from courtbook.services.ssm_service import SSMServiceError, get_ssm_service

logger = logging.getLogger(__name__)

DOKU_SANDBOX_URL = "https://api-sandbox.doku.com"
CHECKOUT_TARGET = "/checkout/v1/payment"

_TRUE_VALUES = {"1", "true", "yes", "on"}


class StoreConfig(BaseModel):
    """Where bookings live."""

    model_config = ConfigDict(frozen=True)

    table_prefix: str = Field(default="booking-dev", description="DynamoDB table name prefix")
    region: str | None = Field(default=None, description="AWS region override")

    def table_name(self, table: str) -> str:
        return f"{self.table_prefix}-{table}"


class GatewayConfig(BaseModel):
    """DOKU credentials and payment-flow policy."""

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(..., min_length=1)
    api_key: SecretStr = Field(default=SecretStr(""))
    secret_key: SecretStr
    base_url: str = DOKU_SANDBOX_URL
    request_target: str = CHECKOUT_TARGET
    timeout_seconds: float = Field(default=90.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    backoff_base_seconds: float = Field(default=2.0, ge=0)
    payment_due_minutes: int = Field(default=60, ge=1)
    frontend_url: str = "http://localhost:3000"
    verify_notifications: bool = False
    notification_target: str = "/api/webhooks/doku"
    guard_terminal_status: bool = True
    store: StoreConfig = Field(default_factory=StoreConfig)

    @property
    def checkout_url(self) -> str:
        return self.base_url.rstrip("/") + self.request_target


def _flag(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in _TRUE_VALUES


def _credential(
    env: Mapping[str, str],
    name: str,
    environment: str,
    *,
    required: bool,
) -> str:
    """Read DOKU_<NAME> from env, else /booking/<environment>/doku/<name> from SSM."""
    value = env.get(f"DOKU_{name.upper()}")
    if value:
        return value

    parameter = f"/booking/{environment}/doku/{name}"
    try:
        return get_ssm_service().get_parameter(parameter)
    except SSMServiceError as e:
        if required:
            raise ConfigurationError(f"DOKU_{name.upper()} is not configured: {e}") from e
        logger.warning("Optional DOKU credential %s not found in SSM", name)
        return ""


def load_config(
    environment: str | None = None,
    env: Mapping[str, str] | None = None,
) -> GatewayConfig:
    """Build the configuration from environment variables and SSM.

    Args:
        environment: Environment name (dev, prod). Defaults to ENVIRONMENT env var.
        env: Mapping to read instead of os.environ (tests)

    Returns:
        Frozen GatewayConfig.

    Raises:
        ConfigurationError: If the client ID or secret key cannot be found.
    """
    env = os.environ if env is None else env
    environment = environment or env.get("ENVIRONMENT", "dev")

    store = StoreConfig(
        table_prefix=env.get("DYNAMODB_TABLE_PREFIX", f"booking-{environment}"),
        region=env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION"),
    )

    return GatewayConfig(
        client_id=_credential(env, "client_id", environment, required=True),
        api_key=SecretStr(_credential(env, "api_key", environment, required=False)),
        secret_key=SecretStr(_credential(env, "secret_key", environment, required=True)),
        base_url=env.get("DOKU_BASE_URL", DOKU_SANDBOX_URL),
        timeout_seconds=float(env.get("DOKU_TIMEOUT_SECONDS", "90")),
        max_attempts=int(env.get("DOKU_MAX_ATTEMPTS", "3")),
        backoff_base_seconds=float(env.get("DOKU_BACKOFF_BASE_SECONDS", "2")),
        payment_due_minutes=int(env.get("DOKU_PAYMENT_DUE_MINUTES", "60")),
        frontend_url=env.get("FRONTEND_URL", "http://localhost:3000"),
        verify_notifications=_flag(env.get("DOKU_VERIFY_NOTIFICATIONS"), False),
        guard_terminal_status=_flag(env.get("BOOKING_GUARD_TERMINAL_STATUS"), True),
        store=store,
    )
