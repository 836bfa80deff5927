"""
DevConnect Real-time Handlers
=============================

Socket.IO event bindings for the default namespace:
  - chatHandler  -- messages, typing indicators, read receipts
  - callHandler  -- call signaling relay
  - roomHandler  -- topic membership and presence queries

Importing this module registers all event handlers with the shared
Socket.IO server instance.
"""

from __future__ import annotations

from . import callHandler, chatHandler, roomHandler

__all__ = [
    "callHandler",
    "chatHandler",
    "roomHandler",
]
