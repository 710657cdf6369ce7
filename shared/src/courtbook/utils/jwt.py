"""JWT helpers for reading identity claims.

Tokens reaching the API have already been verified by the upstream
authorizer (API Gateway / auth provider), so only the payload is decoded
here; no signature verification happens in this process.
"""

import base64
import json
import logging
from typing import Any

logger = logging.getLogger(__name__)


def decode_jwt_payload(token: str | None) -> dict[str, Any] | None:
    """Decode a JWT and return its claims.

    Args:
        token: JWT string (header.payload.signature)

    Returns:
        Claims dict, or None if the token is missing or malformed.
    """
    if not token:
        return None

    parts = token.split(".")
    if len(parts) != 3:
        logger.debug("Invalid JWT format: expected 3 parts, got %d", len(parts))
        return None

    # base64url requires padding to a multiple of 4
    payload_b64 = parts[1]
    padding = 4 - len(payload_b64) % 4
    if padding != 4:
        payload_b64 += "=" * padding

    try:
        payload = json.loads(base64.urlsafe_b64decode(payload_b64))
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Failed to decode JWT payload: %s", type(e).__name__)
        return None

    return payload if isinstance(payload, dict) else None
