"""
DevConnect Real-time Module
===========================

Presence tracking and real-time fan-out.

The core (registry, router, presence broadcaster, dispatcher and
authentication gate) is transport-agnostic and importable on its own.
The Socket.IO binding lives in ``socketServer`` and the ``handlers``
sub-package; the FastAPI app imports both at startup::

    from devconnect.realtime.socketServer import socket_app
    from devconnect.realtime import handlers  # registers event listeners

REST handlers push to live sessions through ``push_to_user`` /
``notify_user``.
"""

from __future__ import annotations

from typing import Any, Optional

from .authGate import (
    AuthenticationError,
    AuthGate,
    InvalidOrExpiredCredential,
    MissingCredential,
    UnknownOrInactiveUser,
)
from .connectionRegistry import (
    ConnectionRegistry,
    IdentitySnapshot,
    PresenceEntry,
    Session,
    SessionState,
)
from .eventDispatcher import EventDispatcher
from .hub import RealtimeHub
from .presenceBroadcaster import PresenceBroadcaster
from .roomRouter import RoomRouter, topic_room, user_room


async def push_to_user(user_id: str, event: str, payload: dict[str, Any]) -> bool:
    """Fire-and-forget push to the process-wide hub (see ``socketServer``)."""
    from .socketServer import push_to_user as _push

    return await _push(user_id, event, payload)


async def notify_user(
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    refs: Optional[dict[str, Any]] = None,
) -> Optional[dict[str, Any]]:
    from .socketServer import notify_user as _notify

    return await _notify(user_id, notification_type, title, message, refs)


__all__ = [
    "AuthGate",
    "AuthenticationError",
    "ConnectionRegistry",
    "EventDispatcher",
    "IdentitySnapshot",
    "InvalidOrExpiredCredential",
    "MissingCredential",
    "PresenceBroadcaster",
    "PresenceEntry",
    "RealtimeHub",
    "RoomRouter",
    "Session",
    "SessionState",
    "UnknownOrInactiveUser",
    "notify_user",
    "push_to_user",
    "topic_room",
    "user_room",
]
