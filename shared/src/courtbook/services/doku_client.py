"""DOKU Checkout API client.

Sends signed payment-creation requests with a hard per-attempt timeout and a
bounded retry loop:

- 4xx responses are definitive rejections and are never retried.
- 5xx responses and transport failures (timeouts, connection errors) are
  retried, up to max_attempts in total, sleeping 2s, 4s, ... between them.
- A success-range response that is not JSON is a protocol error and is not
  retried either; the gateway would answer the same way again.

Cancelling the awaiting task aborts the in-flight request or backoff sleep.
"""

import asyncio
from collections.abc import Awaitable, Callable

import httpx

from courtbook.config import GatewayConfig
from courtbook.models.payment import GatewayResponse, ParsedError, PaymentRequest, RawError
from courtbook.services.signer import sign_request
from courtbook.utils.logging import get_logger, log_payment_operation

logger = get_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]

JSON_CONTENT_TYPE = "application/json"


class DokuServiceError(Exception):
    """Base class for DOKU gateway failures."""

    def __init__(self, message: str, *, attempts: int = 1) -> None:
        super().__init__(message)
        self.attempts = attempts


class GatewayRejected(DokuServiceError):
    """DOKU answered 4xx. Fatal, not retried."""

    def __init__(self, status_code: int, error: ParsedError | RawError, *, attempts: int = 1) -> None:
        super().__init__(f"DOKU error [{status_code}]: {error.summary()}", attempts=attempts)
        self.status_code = status_code
        self.error = error


class GatewayProtocolError(DokuServiceError):
    """DOKU answered in the success range with something we cannot parse."""

    def __init__(self, message: str, *, status_code: int | None = None, attempts: int = 1) -> None:
        super().__init__(message, attempts=attempts)
        self.status_code = status_code


class GatewayServerError(DokuServiceError):
    """DOKU answered 5xx. Retryable."""

    def __init__(self, status_code: int, *, attempts: int = 1) -> None:
        super().__init__(f"DOKU server error: {status_code}", attempts=attempts)
        self.status_code = status_code


class GatewayUnavailable(DokuServiceError):
    """Every attempt failed with a retryable error."""

    def __init__(self, attempts: int, last_error: Exception | None) -> None:
        super().__init__(
            f"DOKU unavailable after {attempts} attempts: {last_error}",
            attempts=attempts,
        )
        self.last_error = last_error


def parse_error_body(response: httpx.Response) -> ParsedError | RawError:
    """Best-effort decode of an error body. Never raises."""
    try:
        return ParsedError(data=response.json())
    except ValueError:
        pass
    try:
        return RawError(text=response.text)
    except (UnicodeDecodeError, LookupError):
        return RawError(text="")


class DokuClient:
    """Client for the DOKU checkout payment endpoint.

    Usage:
        client = DokuClient(config)
        response = await client.create_payment(payment_request)
        redirect_to(response.payment_url)
    """

    def __init__(
        self,
        config: GatewayConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Initialize the client.

        Args:
            config: Gateway configuration (credentials, timeout, retry policy)
            http_client: Shared AsyncClient; one is created per call if omitted
            sleep: Async sleep used between attempts (injectable for tests)
        """
        self._config = config
        self._http_client = http_client
        self._sleep = sleep

    def backoff_delay(self, attempt: int) -> float:
        """Seconds to wait before the given attempt (attempt >= 2).

        With the default base of 2s this is 2s before attempt 2 and 4s
        before attempt 3, i.e. 2^(n-1).
        """
        return self._config.backoff_base_seconds * (2 ** (attempt - 2))

    async def create_payment(self, request: PaymentRequest) -> GatewayResponse:
        """Create a DOKU checkout payment.

        Args:
            request: Checkout request body

        Returns:
            Parsed gateway response with the hosted payment URL.

        Raises:
            GatewayRejected: DOKU returned 4xx.
            GatewayProtocolError: DOKU returned a non-JSON success response.
            GatewayUnavailable: All attempts hit 5xx or transport errors.
        """
        body = request.to_body()
        invoice_number = request.order.invoice_number

        if self._http_client is not None:
            return await self._send_with_retry(self._http_client, body, invoice_number)

        async with httpx.AsyncClient() as client:
            return await self._send_with_retry(client, body, invoice_number)

    async def _send_with_retry(
        self,
        client: httpx.AsyncClient,
        body: bytes,
        invoice_number: str,
    ) -> GatewayResponse:
        max_attempts = self._config.max_attempts
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = self.backoff_delay(attempt)
                logger.info(
                    "Retrying DOKU request for %s in %.1fs (attempt %d/%d)",
                    invoice_number,
                    delay,
                    attempt,
                    max_attempts,
                )
                await self._sleep(delay)

            try:
                return await self._attempt(client, body, invoice_number, attempt)
            except GatewayServerError as e:
                last_error = e
            except (httpx.TimeoutException, TimeoutError) as e:
                last_error = e
                log_payment_operation(
                    logger,
                    "gateway_attempt",
                    booking_id=invoice_number,
                    attempt=attempt,
                    error=f"timeout after {self._config.timeout_seconds}s",
                )
            except httpx.TransportError as e:
                last_error = e
                log_payment_operation(
                    logger,
                    "gateway_attempt",
                    booking_id=invoice_number,
                    attempt=attempt,
                    error=f"transport error: {type(e).__name__}",
                )

        raise GatewayUnavailable(max_attempts, last_error)

    async def _attempt(
        self,
        client: httpx.AsyncClient,
        body: bytes,
        invoice_number: str,
        attempt: int,
    ) -> GatewayResponse:
        # Fresh Request-Id and timestamp on every attempt
        envelope = sign_request(
            body,
            client_id=self._config.client_id,
            secret_key=self._config.secret_key.get_secret_value(),
            target_path=self._config.request_target,
        )

        log_payment_operation(
            logger,
            "gateway_attempt",
            booking_id=invoice_number,
            attempt=attempt,
            request_id=envelope.request_id,
        )

        # httpx timeouts are per phase; asyncio.timeout caps the whole attempt
        async with asyncio.timeout(self._config.timeout_seconds):
            response = await client.post(
                self._config.checkout_url,
                content=body,
                headers=envelope.headers(),
                timeout=self._config.timeout_seconds,
            )
        status_code = response.status_code

        if 400 <= status_code < 500:
            error = parse_error_body(response)
            log_payment_operation(
                logger,
                "gateway_attempt",
                booking_id=invoice_number,
                attempt=attempt,
                status=str(status_code),
                error=f"rejected (no retry): {error.summary()}",
            )
            raise GatewayRejected(status_code, error, attempts=attempt)

        if status_code >= 500:
            log_payment_operation(
                logger,
                "gateway_attempt",
                booking_id=invoice_number,
                attempt=attempt,
                status=str(status_code),
                error="server error",
            )
            raise GatewayServerError(status_code, attempts=attempt)

        content_type = response.headers.get("content-type", "")
        if JSON_CONTENT_TYPE not in content_type.lower():
            logger.error(
                "DOKU returned non-JSON (%s) for %s: %s",
                content_type or "no content-type",
                invoice_number,
                response.text[:200],
            )
            raise GatewayProtocolError(
                "DOKU returned invalid response format",
                status_code=status_code,
                attempts=attempt,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise GatewayProtocolError(
                "DOKU returned malformed JSON",
                status_code=status_code,
                attempts=attempt,
            ) from e

        if not isinstance(data, dict):
            raise GatewayProtocolError(
                "DOKU returned an unexpected JSON document",
                status_code=status_code,
                attempts=attempt,
            )

        log_payment_operation(
            logger,
            "gateway_attempt",
            booking_id=invoice_number,
            attempt=attempt,
            status=str(status_code),
        )
        return GatewayResponse(status_code=status_code, body=data, attempts=attempt)
