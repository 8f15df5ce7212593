"""
Pal Session Tokens Package

HMAC-signed JWT session tokens that bind a caller to an account identity.
Tokens are never stored; validity is decided by signature and expiry alone.
"""

from __future__ import annotations

import base64
import binascii
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

ALGORITHM = "HS256"
REQUIRED_CLAIMS = ["sub", "iss", "aud", "exp", "iat"]


class SessionTokenError(ValueError):
    """Raised for any token that fails validation."""


@dataclass
class SessionToken:
    """Represents an issued session token with metadata."""
    token: str
    token_id: str
    subject: str
    issuer: str
    audience: str
    issued_at: datetime
    expires_at: datetime


def decode_signing_key(key_b64: str) -> bytes:
    """Decode a base64 symmetric signing key."""
    try:
        key = base64.b64decode(key_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Signing key is not valid base64: {e}")
    if not key:
        raise ValueError("Signing key is empty")
    return key


def issue_session_token_raw(
    signing_key: bytes,
    sub: str,
    issuer: str,
    audience: str,
    ttl_secs: int,
    now: Optional[datetime] = None,
) -> SessionToken:
    """
    Issue a session token with an explicit key.

    Args:
        signing_key: Symmetric HMAC key bytes
        sub: Subject identifier (account id)
        issuer: Value of the ``iss`` claim
        audience: Value of the ``aud`` claim
        ttl_secs: Lifetime in seconds
        now: Issuance time, defaults to the current UTC time

    Returns:
        SessionToken with JWT and metadata
    """
    if ttl_secs <= 0:
        raise ValueError("Token TTL must be positive")

    issued_at = (now or datetime.now(timezone.utc)).replace(microsecond=0)
    expires_at = issued_at + timedelta(seconds=ttl_secs)
    jti = str(uuid.uuid4())

    payload = {
        "sub": sub,
        "iss": issuer,
        "aud": audience,
        "iat": issued_at,
        "nbf": issued_at,
        "exp": expires_at,
        "jti": jti,
    }

    token = jwt.encode(payload, signing_key, algorithm=ALGORITHM)

    return SessionToken(
        token=token,
        token_id=jti,
        subject=sub,
        issuer=issuer,
        audience=audience,
        issued_at=issued_at,
        expires_at=expires_at,
    )


def verify_session_token_raw(
    signing_key: bytes,
    token: str,
    issuer: str,
    audience: str,
    leeway_secs: int = 0,
) -> Dict[str, Any]:
    """
    Verify a session token with an explicit key.

    Returns:
        Decoded token payload

    Raises:
        SessionTokenError: If the token is malformed, badly signed, expired,
            or carries the wrong issuer or audience
    """
    if not token:
        raise SessionTokenError("Token missing")
    try:
        return jwt.decode(
            token,
            signing_key,
            algorithms=[ALGORITHM],
            audience=audience,
            issuer=issuer,
            leeway=leeway_secs,
            options={"require": REQUIRED_CLAIMS},
        )
    except jwt.ExpiredSignatureError:
        raise SessionTokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise SessionTokenError(f"Invalid token: {e}")


__all__ = [
    "ALGORITHM",
    "SessionToken",
    "SessionTokenError",
    "decode_signing_key",
    "issue_session_token_raw",
    "verify_session_token_raw",
]
