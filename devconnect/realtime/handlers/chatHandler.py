"""
Chat Handler
============

Direct-message events on the default namespace.  Validation, routing and
emission are done by the hub's ``EventDispatcher``; this module only
binds the Socket.IO event names to it.

Events received FROM clients:
  send_message        { receiverId, content, messageType?, messageId? }
  typing              { receiverId | topic }
  stop_typing         { receiverId | topic }
  mark_messages_read  { senderId, readerId }

Events emitted TO clients:
  receive_message, message_notification, message_sent,
  user_typing, user_stop_typing, messages_read, event_error
"""

from __future__ import annotations

from typing import Any

from ..socketServer import hub, sio


@sio.on("send_message")
async def handle_send_message(sid: str, data: Any = None) -> dict[str, Any]:
    """Relay a chat message to every session of the receiver.

    The sender always gets ``message_sent`` on this session, whether or not
    the receiver is online.
    """
    return await hub.handle(sid, "send_message", data)


@sio.on("typing")
async def handle_typing(sid: str, data: Any = None) -> dict[str, Any]:
    return await hub.handle(sid, "typing", data)


@sio.on("stop_typing")
async def handle_stop_typing(sid: str, data: Any = None) -> dict[str, Any]:
    return await hub.handle(sid, "stop_typing", data)


@sio.on("mark_messages_read")
async def handle_mark_messages_read(sid: str, data: Any = None) -> dict[str, Any]:
    """Mark a conversation read, then send ``messages_read`` to the original sender."""
    return await hub.handle(sid, "mark_messages_read", data)
