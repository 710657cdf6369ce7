"""DOKU request signing.

DOKU authenticates every API call with a body digest and an HMAC-SHA256
signature over a fixed component string:

    Client-Id:<client id>
    Request-Id:<request id>
    Request-Timestamp:<timestamp>
    Request-Target:<path>
    Digest:<digest>

The digest must be computed over the exact bytes sent on the wire, so
callers serialize the body once and pass the same bytes everywhere.
"""

import base64
import datetime as dt
import hashlib
import hmac
import uuid
from collections.abc import Mapping

from courtbook.models.payment import SignedEnvelope

SIGNATURE_PREFIX = "HMACSHA256="


class SignerConfigError(Exception):
    """Raised when signing is attempted without a usable secret key."""

    pass


def digest(body: bytes) -> str:
    """Base64-encoded SHA-256 digest of the request body."""
    return base64.b64encode(hashlib.sha256(body).digest()).decode("ascii")


def component_string(
    client_id: str,
    request_id: str,
    timestamp: str,
    target_path: str,
    body_digest: str,
) -> str:
    """Build the canonical string DOKU signs."""
    return "\n".join(
        [
            f"Client-Id:{client_id}",
            f"Request-Id:{request_id}",
            f"Request-Timestamp:{timestamp}",
            f"Request-Target:{target_path}",
            f"Digest:{body_digest}",
        ]
    )


def sign(
    client_id: str,
    request_id: str,
    timestamp: str,
    target_path: str,
    body_digest: str,
    secret_key: str,
) -> str:
    """Compute the Signature header value.

    Args:
        client_id: DOKU Client-Id
        request_id: Request-Id of this call
        timestamp: Request-Timestamp of this call
        target_path: Request path, e.g. /checkout/v1/payment
        body_digest: Output of digest() for the body
        secret_key: Shared DOKU secret key

    Returns:
        "HMACSHA256=" followed by the base64 HMAC.

    Raises:
        SignerConfigError: If the secret key is missing or not a string.
    """
    if not isinstance(secret_key, str) or not secret_key:
        raise SignerConfigError("DOKU secret key is not configured")

    mac = hmac.new(
        secret_key.encode("utf-8"),
        component_string(client_id, request_id, timestamp, target_path, body_digest).encode(
            "utf-8"
        ),
        hashlib.sha256,
    )
    return SIGNATURE_PREFIX + base64.b64encode(mac.digest()).decode("ascii")


def request_timestamp(now: dt.datetime | None = None) -> str:
    """UTC ISO-8601 timestamp without fractional seconds, e.g. 2026-10-19T08:15:30Z."""
    now = now or dt.datetime.now(dt.UTC)
    return now.astimezone(dt.UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def new_request_id() -> str:
    """Fresh Request-Id. Never reuse one, not even for a retry."""
    return str(uuid.uuid4())


def sign_request(
    body: bytes,
    *,
    client_id: str,
    secret_key: str,
    target_path: str,
    request_id: str | None = None,
    timestamp: str | None = None,
) -> SignedEnvelope:
    """Build the signed envelope for one outbound request."""
    request_id = request_id or new_request_id()
    timestamp = timestamp or request_timestamp()
    body_digest = digest(body)

    return SignedEnvelope(
        client_id=client_id,
        request_id=request_id,
        request_timestamp=timestamp,
        request_target=target_path,
        digest=body_digest,
        signature=sign(client_id, request_id, timestamp, target_path, body_digest, secret_key),
    )


def verify(
    headers: Mapping[str, str],
    body: bytes,
    *,
    client_id: str,
    secret_key: str,
    target_path: str,
) -> bool:
    """Check the Signature header of an inbound DOKU notification.

    Header lookup is case-insensitive. Returns False on any missing
    component instead of raising.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    received = lowered.get("signature")
    request_id = lowered.get("request-id")
    timestamp = lowered.get("request-timestamp")
    if not received or not request_id or not timestamp:
        return False
    if lowered.get("client-id", client_id) != client_id:
        return False

    expected = sign(client_id, request_id, timestamp, target_path, digest(body), secret_key)
    return hmac.compare_digest(expected, received)
