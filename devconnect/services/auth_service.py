"""
Token helpers shared by the login flow and the realtime gate.

Tokens are signed with PyJWT using ``settings.jwt_secret`` and
``settings.jwt_algorithm``.  Issuance lives with the REST auth
endpoints; ``create_access_token`` is kept here so tooling and tests mint
tokens exactly the way the gate expects them.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt

from devconnect.core.config import settings


def create_access_token(
    user_id: str,
    *,
    expires_delta: Optional[timedelta] = None,
) -> tuple[str, datetime]:
    """Create a signed access token.

    Returns:
        Tuple of (token_string, expiration_datetime).
    """
    now = datetime.now(timezone.utc)
    expires_at = now + (
        expires_delta
        if expires_delta is not None
        else timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": str(user_id),
        "type": "access",
        "exp": expires_at,
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    token = jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return token, expires_at


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If the token has expired.
        jwt.InvalidTokenError: If the token is otherwise invalid.
    """
    return jwt.decode(
        token,
        settings.jwt_secret,
        algorithms=[settings.jwt_algorithm],
    )
