"""
Emission helpers.

``SocketIOEmitter`` adapts a python-socketio ``AsyncServer`` to the
``Emitter`` protocol.  ``fan_out`` delivers one event to a set of
sessions; a failure on one session is logged and does not stop delivery
to the rest.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

import socketio

from .interfaces import Emitter

logger = logging.getLogger(__name__)


class SocketIOEmitter:
    """Emit to a single sid on one namespace of a Socket.IO server."""

    def __init__(self, sio: socketio.AsyncServer, namespace: str = "/") -> None:
        self._sio = sio
        self._namespace = namespace

    async def emit(self, event: str, data: Any, *, to: str) -> None:
        await self._sio.emit(event, data, to=to, namespace=self._namespace)


async def fan_out(
    emitter: Emitter,
    session_ids: Iterable[str],
    event: str,
    data: Any,
    *,
    skip_sid: str | None = None,
) -> int:
    """Send ``event`` to every sid in ``session_ids``.

    Returns:
        The number of sessions the event was handed to.
    """
    delivered = 0
    for sid in session_ids:
        if sid == skip_sid:
            continue
        try:
            await emitter.emit(event, data, to=sid)
        except Exception:
            logger.exception("Failed to emit %s to sid=%s", event, sid)
            continue
        delivered += 1
    if delivered:
        logger.debug("Emitted %s to %d sessions", event, delivered)
    return delivered
