"""
WebSocket Server
================

Main Socket.IO server for the DevConnect platform.  Handles real-time
communication between browser clients and the backend for:

  - Online/offline presence
  - Direct chat messages, typing indicators and read receipts
  - Voice/video call signaling (relayed, never interpreted)
  - Live notifications pushed by REST handlers (bookings, connection
    requests, post likes/comments/shares)

Architecture:
  - python-socketio AsyncServer mounted as ASGI middleware on FastAPI
  - Single process: presence and routing state live in this process's
    ``RealtimeHub``; no client manager backplane is configured
  - JWT authentication on connect via the ``AuthGate``
  - Room-based routing: ``user_<user_id>`` personal rooms and
    ``topic_<name>`` ad-hoc rooms, kept by the ``RoomRouter``

Connection lifecycle:
  1. Client connects with ``auth: { token: "<jwt>" }``
  2. Server validates the JWT and loads the user (refused on failure)
  3. Session is registered and joined to its personal room
  4. ``user_online`` / ``online_users`` are broadcast
  5. On disconnect, memberships are dropped and presence is re-broadcast
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import socketio
from socketio.exceptions import ConnectionRefusedError as SocketConnectionRefused

from devconnect.api.deps import async_session_factory
from devconnect.core.config import settings
from devconnect.services.auth_service import decode_token
from devconnect.services.messageStore import SqlMessageStore
from devconnect.services.notificationStore import SqlNotificationStore
from devconnect.services.userDirectory import SqlUserDirectory

from .authGate import AuthenticationError, AuthGate
from .emitter import SocketIOEmitter
from .hub import RealtimeHub

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Socket.IO server instance
# ---------------------------------------------------------------------------

def _cors_origins() -> str | list[str]:
    raw = settings.ws_cors_allowed_origins
    if raw.strip() == "*":
        return "*"
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=_cors_origins(),
    logger=False,
    engineio_logger=False,
    ping_timeout=settings.ws_ping_timeout,
    ping_interval=settings.ws_ping_interval,
    max_http_buffer_size=1_000_000,  # 1 MB
)


# ---------------------------------------------------------------------------
# Hub: registry, router, presence and dispatcher for this process
# ---------------------------------------------------------------------------

def build_hub(server: socketio.AsyncServer) -> RealtimeHub:
    """Wire the realtime core to the Socket.IO server and the database."""
    return RealtimeHub(
        emitter=SocketIOEmitter(server),
        auth_gate=AuthGate(decode_token, SqlUserDirectory(async_session_factory)),
        notifications=SqlNotificationStore(async_session_factory),
        messages=SqlMessageStore(async_session_factory),
    )


hub = build_hub(sio)


# ---------------------------------------------------------------------------
# Connect / disconnect
# ---------------------------------------------------------------------------

@sio.event
async def connect(sid: str, environ: dict[str, Any], auth: Optional[dict[str, Any]] = None) -> bool:
    """Authenticate the connection and register the user.

    Raises ``ConnectionRefusedError`` so the client receives the reason in
    its ``connect_error`` handler.  Returns False when the client went away
    before authentication finished.
    """
    try:
        session = await hub.connect(sid, auth, environ)
    except AuthenticationError as exc:
        logger.info("Connection rejected for sid=%s -- %s", sid, exc)
        raise SocketConnectionRefused(str(exc))
    except Exception:
        logger.exception("Connection failed for sid=%s", sid)
        raise SocketConnectionRefused("Authentication unavailable")
    return session is not None


@sio.event
async def disconnect(sid: str, *args: Any) -> None:
    """Clean up rooms and presence on disconnect."""
    await hub.disconnect(sid)


# ---------------------------------------------------------------------------
# High-level helpers (used by REST handlers and services)
# ---------------------------------------------------------------------------

async def push_to_user(user_id: str, event: str, payload: dict[str, Any]) -> bool:
    """Send an event to every live session of ``user_id``.

    Fire-and-forget: never raises, and a user with no live session is a
    no-op.  The payload gains a recomputed ``unreadCount``.
    """
    return await hub.push_to_user(user_id, event, payload)


async def notify_user(
    user_id: str,
    notification_type: str,
    title: str,
    message: str,
    refs: Optional[dict[str, Any]] = None,
) -> Optional[dict[str, Any]]:
    """Store a notification and push ``new_notification`` to the user."""
    return await hub.notify_user(user_id, notification_type, title, message, refs)


# ---------------------------------------------------------------------------
# ASGI app for mounting onto FastAPI
# ---------------------------------------------------------------------------

socket_app = socketio.ASGIApp(
    socketio_server=sio,
    socketio_path=settings.ws_socketio_path,
)
