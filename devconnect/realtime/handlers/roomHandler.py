"""
Room Handler
============

Client-initiated topic membership (chat threads, call sessions) and
presence queries.

Events received FROM clients:
  join_topic        { topic }
  leave_topic       { topic }
  get_online_users  {}
"""

from __future__ import annotations

from typing import Any

from ..socketServer import hub, sio


@sio.on("join_topic")
async def handle_join_topic(sid: str, data: Any = None) -> dict[str, Any]:
    """Join ``topic_<topic>``.  Joining twice is a no-op."""
    return await hub.handle(sid, "join_topic", data)


@sio.on("leave_topic")
async def handle_leave_topic(sid: str, data: Any = None) -> dict[str, Any]:
    """Leave ``topic_<topic>``.  Leaving a topic the session is not in is a no-op."""
    return await hub.handle(sid, "leave_topic", data)


@sio.on("get_online_users")
async def handle_get_online_users(sid: str, data: Any = None) -> dict[str, Any]:
    return await hub.handle(sid, "get_online_users", data)
