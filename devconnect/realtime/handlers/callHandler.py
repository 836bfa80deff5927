"""
Call Signaling Handler
======================

Relays WebRTC signaling between two peers.  SDP offers/answers and ICE
candidates are forwarded verbatim -- the server never parses them.

  call_offer     -> incoming_call
  call_answer    -> call_answered
  call_reject    -> call_rejected
  call_end       -> call_ended
  ice_candidate  -> ice_candidate

Payload: { "peerId": "<user id>", "signal": <opaque> }
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from ..events import CALL_EVENTS
from ..socketServer import hub, sio


def _relay(event: str) -> Callable[..., Awaitable[dict[str, Any]]]:
    async def handler(sid: str, data: Any = None) -> dict[str, Any]:
        return await hub.handle(sid, event, data)

    handler.__name__ = f"handle_{event}"
    return handler


for _event in CALL_EVENTS:
    sio.on(_event, handler=_relay(_event))
