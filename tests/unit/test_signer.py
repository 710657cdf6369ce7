"""Unit tests for DOKU request signing.

Test categories:
- Digest computation
- Signature computation and component string
- Timestamp and request ID generation
- Envelope headers
- Inbound signature verification
"""

import base64
import datetime as dt
import hashlib
import hmac

import pytest

from courtbook.services import signer
from courtbook.services.signer import SIGNATURE_PREFIX, SignerConfigError

CLIENT_ID = "MCH-0001-1234567890"
SECRET = "SK-abcdef"
TARGET = "/checkout/v1/payment"


class TestDigest:
    """Body digest is base64(SHA-256(body))."""

    def test_empty_body_digest(self):
        assert signer.digest(b"") == "47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU="

    def test_digest_matches_hashlib(self):
        body = b'{"order":{"amount":200000}}'
        expected = base64.b64encode(hashlib.sha256(body).digest()).decode()
        assert signer.digest(body) == expected

    def test_digest_depends_on_exact_bytes(self):
        """Whitespace differences change the digest."""
        assert signer.digest(b'{"a":1}') != signer.digest(b'{"a": 1}')


class TestSign:
    """HMAC-SHA256 signature over the component string."""

    def test_component_string_layout(self):
        assert signer.component_string("c", "r", "t", "/p", "d") == (
            "Client-Id:c\nRequest-Id:r\nRequest-Timestamp:t\nRequest-Target:/p\nDigest:d"
        )

    def test_signature_matches_reference_hmac(self):
        body_digest = signer.digest(b"{}")
        components = (
            f"Client-Id:{CLIENT_ID}\n"
            "Request-Id:req-1\n"
            "Request-Timestamp:2026-10-19T08:15:30Z\n"
            f"Request-Target:{TARGET}\n"
            f"Digest:{body_digest}"
        )
        mac = hmac.new(SECRET.encode(), components.encode(), hashlib.sha256).digest()
        expected = "HMACSHA256=" + base64.b64encode(mac).decode()

        result = signer.sign(CLIENT_ID, "req-1", "2026-10-19T08:15:30Z", TARGET, body_digest, SECRET)

        assert result == expected
        assert result.startswith(SIGNATURE_PREFIX)

    def test_signature_is_deterministic(self):
        args = (CLIENT_ID, "req-1", "2026-10-19T08:15:30Z", TARGET, "digest", SECRET)
        assert signer.sign(*args) == signer.sign(*args)

    def test_any_component_change_changes_signature(self):
        base = signer.sign(CLIENT_ID, "req-1", "2026-10-19T08:15:30Z", TARGET, "d", SECRET)
        assert signer.sign(CLIENT_ID, "req-2", "2026-10-19T08:15:30Z", TARGET, "d", SECRET) != base
        assert signer.sign(CLIENT_ID, "req-1", "2026-10-19T08:15:31Z", TARGET, "d", SECRET) != base
        assert signer.sign(CLIENT_ID, "req-1", "2026-10-19T08:15:30Z", "/x", "d", SECRET) != base
        assert signer.sign(CLIENT_ID, "req-1", "2026-10-19T08:15:30Z", TARGET, "e", SECRET) != base

    @pytest.mark.parametrize("secret", ["", None, 123])
    def test_unusable_secret_raises(self, secret):
        with pytest.raises(SignerConfigError):
            signer.sign(CLIENT_ID, "req-1", "ts", TARGET, "d", secret)


class TestTimestampAndRequestId:
    """Request metadata generation."""

    def test_timestamp_has_no_fractional_seconds(self):
        now = dt.datetime(2026, 10, 19, 8, 15, 30, 987654, tzinfo=dt.UTC)
        assert signer.request_timestamp(now) == "2026-10-19T08:15:30Z"

    def test_timestamp_is_converted_to_utc(self):
        jakarta = dt.timezone(dt.timedelta(hours=7))
        now = dt.datetime(2026, 10, 19, 15, 15, 30, tzinfo=jakarta)
        assert signer.request_timestamp(now) == "2026-10-19T08:15:30Z"

    def test_request_ids_are_unique(self):
        ids = {signer.new_request_id() for _ in range(50)}
        assert len(ids) == 50


class TestSignRequest:
    """Signed envelope for an outbound request."""

    def test_envelope_fields(self):
        body = b'{"order":{}}'
        envelope = signer.sign_request(
            body,
            client_id=CLIENT_ID,
            secret_key=SECRET,
            target_path=TARGET,
            request_id="req-9",
            timestamp="2026-10-19T08:15:30Z",
        )

        assert envelope.client_id == CLIENT_ID
        assert envelope.request_id == "req-9"
        assert envelope.request_target == TARGET
        assert envelope.digest == signer.digest(body)
        assert envelope.signature == signer.sign(
            CLIENT_ID, "req-9", "2026-10-19T08:15:30Z", TARGET, signer.digest(body), SECRET
        )

    def test_headers(self):
        envelope = signer.sign_request(
            b"{}", client_id=CLIENT_ID, secret_key=SECRET, target_path=TARGET
        )
        headers = envelope.headers()

        assert headers["Content-Type"] == "application/json"
        assert headers["Client-Id"] == CLIENT_ID
        assert headers["Request-Id"] == envelope.request_id
        assert headers["Request-Timestamp"] == envelope.request_timestamp
        assert headers["Signature"].startswith("HMACSHA256=")

    def test_generates_fresh_request_id_each_call(self):
        first = signer.sign_request(b"{}", client_id=CLIENT_ID, secret_key=SECRET, target_path=TARGET)
        second = signer.sign_request(b"{}", client_id=CLIENT_ID, secret_key=SECRET, target_path=TARGET)
        assert first.request_id != second.request_id


class TestVerify:
    """Inbound notification signature check."""

    def _headers(self, body: bytes, **overrides: str) -> dict[str, str]:
        envelope = signer.sign_request(
            body, client_id=CLIENT_ID, secret_key=SECRET, target_path="/api/webhooks/doku"
        )
        headers = envelope.headers()
        headers.update(overrides)
        return headers

    def test_valid_signature(self):
        body = b'{"order":{"invoice_number":"b1"}}'
        assert signer.verify(
            self._headers(body),
            body,
            client_id=CLIENT_ID,
            secret_key=SECRET,
            target_path="/api/webhooks/doku",
        )

    def test_header_lookup_is_case_insensitive(self):
        body = b"{}"
        headers = {k.lower(): v for k, v in self._headers(body).items()}
        assert signer.verify(
            headers, body, client_id=CLIENT_ID, secret_key=SECRET, target_path="/api/webhooks/doku"
        )

    def test_tampered_body_fails(self):
        headers = self._headers(b'{"transaction":{"status":"FAILED"}}')
        assert not signer.verify(
            headers,
            b'{"transaction":{"status":"SUCCESS"}}',
            client_id=CLIENT_ID,
            secret_key=SECRET,
            target_path="/api/webhooks/doku",
        )

    def test_missing_signature_fails(self):
        headers = self._headers(b"{}")
        del headers["Signature"]
        assert not signer.verify(
            headers, b"{}", client_id=CLIENT_ID, secret_key=SECRET, target_path="/api/webhooks/doku"
        )

    def test_other_client_id_fails(self):
        headers = self._headers(b"{}", **{"Client-Id": "MCH-OTHER"})
        assert not signer.verify(
            headers, b"{}", client_id=CLIENT_ID, secret_key=SECRET, target_path="/api/webhooks/doku"
        )
