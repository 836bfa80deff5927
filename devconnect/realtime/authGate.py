"""
Authentication Gate
===================

Validates the credential a client presents when it opens a Socket.IO
connection and turns it into an ``IdentitySnapshot``.  Nothing else in
the realtime core sees a session before this succeeds.

The client provides ``auth: { token: "<jwt>" }`` on connect.  Clients
that cannot set the auth payload may send ``Authorization: Bearer <jwt>``
as an HTTP header instead.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

import jwt

from .connectionRegistry import IdentitySnapshot
from .interfaces import CredentialVerifier, UserDirectory

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class AuthenticationError(Exception):
    """Base class for connection-level rejections."""
    pass


class MissingCredential(AuthenticationError):
    """Raised when the connect request carries no token at all."""
    pass


class InvalidOrExpiredCredential(AuthenticationError):
    """Raised when the token fails signature, expiry or claim checks."""
    pass


class UnknownOrInactiveUser(AuthenticationError):
    """Raised when the token subject has no active account."""
    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def extract_token(
    auth: Optional[Mapping[str, Any]],
    environ: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Pull the raw token out of the connect auth payload or headers."""
    token = (auth or {}).get("token")
    if not token and environ:
        token = environ.get("HTTP_AUTHORIZATION")
    if not token or not isinstance(token, str):
        return None
    if token.lower().startswith("bearer "):
        token = token[7:]
    return token.strip() or None


def _subject(claims: Mapping[str, Any]) -> Optional[str]:
    # Tokens issued by the legacy login flow carry ``userId`` instead of ``sub``
    subject = claims.get("sub") or claims.get("userId")
    return str(subject) if subject else None


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

class AuthGate:
    """Verify a connect-time credential and resolve the user behind it.

    Args:
        verify: Decodes a token into its claims; raises
            ``jwt.InvalidTokenError`` (or a subclass) on failure.
        users: Directory used to reject tokens of deleted or deactivated
            accounts and to build the identity snapshot.
    """

    def __init__(
        self,
        verify: CredentialVerifier,
        users: UserDirectory,
    ) -> None:
        self._verify = verify
        self._users = users

    async def authenticate(
        self,
        auth: Optional[Mapping[str, Any]],
        environ: Optional[Mapping[str, Any]] = None,
    ) -> IdentitySnapshot:
        token = extract_token(auth, environ)
        if token is None:
            raise MissingCredential("Authentication token is required")

        try:
            claims = self._verify(token)
        except jwt.ExpiredSignatureError as exc:
            logger.warning("JWT token expired")
            raise InvalidOrExpiredCredential("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            logger.warning("Invalid JWT token: %s", exc)
            raise InvalidOrExpiredCredential("Token is not valid") from exc

        user_id = _subject(claims)
        if user_id is None:
            logger.warning("JWT missing subject claim")
            raise InvalidOrExpiredCredential("Token is not valid")

        identity = await self._users.find_active_user(user_id)
        if identity is None:
            raise UnknownOrInactiveUser("Token is not valid - user not found")
        return identity
