"""Booking payment orchestration.

Turns a committed slot selection into a stored booking plus a DOKU hosted
checkout redirect:

1. Resolve or insert the booking (status pending) before any network call.
2. Build the checkout request with the booking ID as invoice number.
3. Sign and send it through the DokuClient.
4. Move the booking to waiting_payment and return the checkout URL.

Booking creation and checkout creation are not transactional across the
network boundary. If anything after step 1 fails the booking stays pending
so the customer can retry payment against the same booking.
"""

from courtbook.config import GatewayConfig
from courtbook.models import (
    Booking,
    BookingCreate,
    BookingError,
    BookingPaymentStatus,
    CustomerIdentity,
    DokuCustomer,
    DokuOrder,
    DokuPaymentTerms,
    ErrorCode,
    PaymentInitiation,
    PaymentRedirect,
    PaymentRequest,
    UpdateOutcome,
)
from courtbook.services.booking_store import BookingStore
from courtbook.services.doku_client import (
    DokuClient,
    GatewayProtocolError,
    GatewayRejected,
    GatewayUnavailable,
)
from courtbook.services.signer import SignerConfigError
from courtbook.utils.logging import get_logger, log_payment_operation

logger = get_logger(__name__)


class PaymentOrchestrator:
    """Creates bookings and DOKU checkout sessions for customers."""

    def __init__(
        self,
        store: BookingStore,
        gateway: DokuClient,
        config: GatewayConfig,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Booking store
            gateway: DOKU client
            config: Gateway configuration (callback URL base, due window, guard)
        """
        self.store = store
        self.gateway = gateway
        self.config = config

    async def initiate(
        self,
        request: PaymentInitiation,
        identity: CustomerIdentity | None,
        *,
        origin: str | None = None,
    ) -> PaymentRedirect:
        """Create (or re-enter) a booking and start a DOKU checkout.

        Args:
            request: Payment initiation from the booking UI
            identity: Verified caller identity
            origin: Site origin the customer came from, for the callback URL

        Returns:
            PaymentRedirect with the hosted checkout URL and invoice number.

        Raises:
            BookingError: UNAUTHORIZED, FORBIDDEN, INVALID_REQUEST,
                BOOKING_NOT_PAYABLE, STORE_FAILURE or one of the GATEWAY_* codes.
        """
        if identity is None:
            raise BookingError(code=ErrorCode.UNAUTHORIZED)

        if request.amount is None or request.amount < 1:
            raise BookingError(
                code=ErrorCode.INVALID_REQUEST,
                details={"field": "amount"},
                message="Missing required fields: amount",
            )

        if request.booking_id is not None and not request.booking_id.strip():
            raise BookingError(
                code=ErrorCode.INVALID_REQUEST,
                details={"field": "bookingId"},
                message="Missing required fields: bookingId",
            )

        booking = self._resolve_booking(request, identity)
        payment_request = self.build_payment_request(booking, identity, origin=origin)

        log_payment_operation(
            logger,
            "create_checkout",
            booking_id=booking.booking_id,
            amount=booking.amount,
            status=booking.payment_status.value,
        )

        try:
            response = await self.gateway.create_payment(payment_request)
        except GatewayRejected as e:
            raise self._gateway_failure(booking, ErrorCode.GATEWAY_REJECTED, e) from e
        except GatewayProtocolError as e:
            raise self._gateway_failure(booking, ErrorCode.GATEWAY_PROTOCOL_ERROR, e) from e
        except GatewayUnavailable as e:
            raise self._gateway_failure(booking, ErrorCode.GATEWAY_UNAVAILABLE, e) from e
        except SignerConfigError as e:
            logger.error("DOKU signing is misconfigured: %s", e)
            raise

        payment_url = response.payment_url
        if not payment_url:
            logger.error(
                "DOKU response for %s has no response.payment.url (keys: %s)",
                booking.booking_id,
                sorted(response.body.keys()),
            )
            raise self._gateway_failure(
                booking,
                ErrorCode.GATEWAY_PROTOCOL_ERROR,
                GatewayProtocolError("No payment URL in DOKU response"),
            )

        outcome = self.store.update_payment_status(
            booking.booking_id,
            BookingPaymentStatus.WAITING_PAYMENT,
            guard_terminal=self.config.guard_terminal_status,
        )
        if outcome is not UpdateOutcome.UPDATED:
            # A notification settled (or an admin removed) the booking first
            logger.warning(
                "Booking %s not moved to waiting_payment: %s",
                booking.booking_id,
                outcome.value,
            )

        log_payment_operation(
            logger,
            "create_checkout",
            booking_id=booking.booking_id,
            status=BookingPaymentStatus.WAITING_PAYMENT.value,
            attempts=response.attempts,
        )

        return PaymentRedirect(payment_url=payment_url, invoice_number=booking.booking_id)

    def build_payment_request(
        self,
        booking: Booking,
        identity: CustomerIdentity,
        *,
        origin: str | None = None,
    ) -> PaymentRequest:
        """Build the DOKU checkout body for a booking."""
        return PaymentRequest(
            order=DokuOrder(
                amount=booking.amount,
                invoice_number=booking.booking_id,
                callback_url=self.callback_url(booking.booking_id, origin),
            ),
            payment=DokuPaymentTerms(payment_due_date=self.config.payment_due_minutes),
            customer=DokuCustomer(
                id=identity.id,
                name=identity.display_name,
                email=identity.email or "",
            ),
        )

    def callback_url(self, booking_id: str, origin: str | None = None) -> str:
        """Dashboard URL DOKU sends the customer back to after paying."""
        base = (origin or self.config.frontend_url).rstrip("/")
        return f"{base}/dashboard?payment=success&booking={booking_id}"

    def _resolve_booking(
        self,
        request: PaymentInitiation,
        identity: CustomerIdentity,
    ) -> Booking:
        """Re-enter an existing booking or insert a new pending one."""
        if request.booking_id:
            existing = self.store.get_booking(request.booking_id)
            if existing is not None:
                if existing.user_id != identity.id:
                    raise BookingError(
                        code=ErrorCode.FORBIDDEN,
                        details={"booking_id": existing.booking_id},
                    )
                if existing.payment_status.is_terminal:
                    raise BookingError(
                        code=ErrorCode.BOOKING_NOT_PAYABLE,
                        details={
                            "booking_id": existing.booking_id,
                            "payment_status": existing.payment_status.value,
                        },
                    )
                if existing.amount != request.amount:
                    logger.warning(
                        "Amount %s for booking %s differs from stored %d; using stored amount",
                        request.amount,
                        existing.booking_id,
                        existing.amount,
                    )
                logger.info("Retrying payment for existing booking %s", existing.booking_id)
                return existing

        missing = [
            name
            for name, value in (
                ("courtLabel", request.court_label),
                ("date", request.date),
                ("timeSlot", request.time_slot),
            )
            if not value
        ]
        if missing:
            raise BookingError(
                code=ErrorCode.INVALID_REQUEST,
                details={"fields": ", ".join(missing)},
                message=f"Missing required fields: {', '.join(missing)}",
            )

        return self.store.create_booking(
            BookingCreate(
                user_id=identity.id,
                court_label=request.court_label,
                booking_date=request.date,
                time_slot=request.time_slot,
                amount=request.amount,
            ),
            booking_id=request.booking_id,
        )

    @staticmethod
    def _gateway_failure(booking: Booking, code: ErrorCode, error: Exception) -> BookingError:
        log_payment_operation(
            logger,
            "create_checkout",
            booking_id=booking.booking_id,
            status=BookingPaymentStatus.PENDING.value,
            error=str(error),
        )
        return BookingError(
            code=code,
            details={"booking_id": booking.booking_id, "reason": str(error)},
        )
