"""Caller identity resolution.

Authentication happens upstream. The API only reads the identity the
authorizer already verified, from either:

- x-user-sub / x-user-email / x-user-name headers injected by the
  API Gateway authorizer, or
- the claims of the bearer token in Authorization (sub, email,
  user_metadata.full_name), whose signature was checked upstream.
"""

from fastapi import Request

from courtbook.models import BookingError, CustomerIdentity, ErrorCode
from courtbook.utils.jwt import decode_jwt_payload

BEARER_PREFIX = "bearer "


def resolve_identity(request: Request) -> CustomerIdentity | None:
    """Return the caller's identity, or None if none was supplied."""
    user_sub = request.headers.get("x-user-sub")
    if user_sub:
        return CustomerIdentity(
            id=user_sub,
            email=request.headers.get("x-user-email") or None,
            name=request.headers.get("x-user-name") or None,
        )

    authorization = request.headers.get("authorization", "")
    if not authorization.lower().startswith(BEARER_PREFIX):
        return None

    claims = decode_jwt_payload(authorization[len(BEARER_PREFIX):].strip())
    if not claims or not claims.get("sub"):
        return None

    metadata = claims.get("user_metadata")
    name = metadata.get("full_name") if isinstance(metadata, dict) else None
    email = claims.get("email")

    return CustomerIdentity(
        id=str(claims["sub"]),
        email=str(email) if email else None,
        name=str(name or claims.get("name") or "") or None,
    )


def require_identity(request: Request) -> CustomerIdentity:
    """FastAPI dependency that rejects anonymous callers with 401."""
    identity = resolve_identity(request)
    if identity is None:
        raise BookingError(code=ErrorCode.UNAUTHORIZED)
    return identity
