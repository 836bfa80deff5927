"""
Collaborator interfaces consumed by the realtime core.

The core never imports the database layer directly; it is handed objects
that satisfy these protocols.  ``devconnect.services`` provides the
SQLAlchemy-backed implementations wired in by ``socketServer``.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol

from .connectionRegistry import IdentitySnapshot


class Emitter(Protocol):
    """Transport seam: deliver one event to one session."""

    async def emit(self, event: str, data: Any, *, to: str) -> None: ...


class CredentialVerifier(Protocol):
    """Decode a bearer token into its claims.

    Raises ``jwt.InvalidTokenError`` (or a subclass) when the token is bad.
    """

    def __call__(self, token: str) -> dict[str, Any]: ...


class UserDirectory(Protocol):
    async def find_active_user(self, user_id: str) -> Optional[IdentitySnapshot]: ...


class NotificationStore(Protocol):
    async def create(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        refs: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]: ...

    async def count_unread(self, user_id: str) -> int: ...

    async def mark_read(self, user_id: str, notification_id: str) -> bool: ...

    async def mark_all_read(self, user_id: str) -> int: ...

    async def delete(self, user_id: str, notification_id: str) -> bool: ...


class MessageStore(Protocol):
    async def mark_conversation_read(self, sender_id: str, reader_id: str) -> int: ...
