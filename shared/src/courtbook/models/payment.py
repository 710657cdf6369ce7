"""Payment models for DOKU checkout requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CustomerIdentity(BaseModel):
    """An authenticated customer, already verified upstream.

    The core never sees credentials, only the resolved identity.
    """

    model_config = ConfigDict(strict=True)

    id: str = Field(..., min_length=1, description="User ID from the auth provider")
    name: str | None = Field(default=None, description="Display name")
    email: str | None = Field(default=None, description="Email address")

    @property
    def display_name(self) -> str:
        """Name sent to DOKU, falling back to email then a generic label."""
        return self.name or self.email or "Customer"


class PaymentInitiation(BaseModel):
    """A customer's request to pay for a court slot.

    Everything is optional at parse time; the orchestrator decides what
    is missing so that validation failures have no side effects.
    """

    model_config = ConfigDict(strict=True)

    booking_id: str | None = None
    amount: int | None = None
    court_label: str | None = None
    date: str | None = None
    time_slot: str | None = None


class PaymentRedirect(BaseModel):
    """Where to send the customer after a checkout session was created."""

    model_config = ConfigDict(strict=True)

    payment_url: str = Field(
        ...,
        description="DOKU hosted checkout URL",
        examples=["https://sandbox.doku.com/checkout-link-v2/abc123"],
    )
    invoice_number: str = Field(..., description="Booking ID used as invoice number")


# === DOKU checkout request body ===


class DokuOrder(BaseModel):
    amount: int
    invoice_number: str
    callback_url: str


class DokuPaymentTerms(BaseModel):
    payment_due_date: int = Field(default=60, description="Minutes until the checkout expires")


class DokuCustomer(BaseModel):
    id: str
    name: str
    email: str


class PaymentRequest(BaseModel):
    """Body of a DOKU checkout payment call.

    Serialize it once with to_body(); the digest and signature must be
    computed over exactly the bytes that go on the wire.
    """

    order: DokuOrder
    payment: DokuPaymentTerms
    customer: DokuCustomer

    def to_body(self) -> bytes:
        """Serialize to the exact request body bytes."""
        return self.model_dump_json().encode("utf-8")


class SignedEnvelope(BaseModel):
    """Authentication headers for one outbound DOKU request."""

    model_config = ConfigDict(strict=True)

    client_id: str
    request_id: str
    request_timestamp: str
    request_target: str
    digest: str
    signature: str

    def headers(self) -> dict[str, str]:
        """Render the HTTP headers DOKU expects."""
        return {
            "Content-Type": "application/json",
            "Client-Id": self.client_id,
            "Request-Id": self.request_id,
            "Request-Timestamp": self.request_timestamp,
            "Signature": self.signature,
        }


# === DOKU responses ===


class GatewayResponse(BaseModel):
    """A successful DOKU checkout response."""

    status_code: int
    body: dict[str, Any]
    attempts: int = 1

    @property
    def payment_url(self) -> str | None:
        """Hosted checkout URL at response.payment.url, if present."""
        response = self.body.get("response")
        if not isinstance(response, dict):
            return None
        payment = response.get("payment")
        if not isinstance(payment, dict):
            return None
        url = payment.get("url")
        return url if isinstance(url, str) and url else None


class ParsedError(BaseModel):
    """Gateway error body that decoded as JSON."""

    data: Any

    def summary(self) -> str:
        if isinstance(self.data, dict):
            # DOKU nests messages as error.message or message: [..]
            error = self.data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            message = self.data.get("message")
            if isinstance(message, list):
                return "; ".join(str(m) for m in message)
            if message:
                return str(message)
        return str(self.data)[:200]


class RawError(BaseModel):
    """Gateway error body that was not JSON."""

    text: str

    def summary(self) -> str:
        return self.text[:200] or "empty response body"
