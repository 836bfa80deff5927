"""
Presence Broadcaster
====================

Keeps every connected client informed of who is online.

Events emitted TO clients:
  user_online    { userId, name, avatar, role, status }
  user_offline   { userId, status, lastSeen }
  online_users   { userIds }

For one connect or disconnect the single-user transition is always sent
before the full set, and the full set is read from the registry after
the transition, so a client applying both in order never sees them
disagree.
"""

from __future__ import annotations

import logging
from typing import Any

from .connectionRegistry import ConnectionRegistry, Session
from .emitter import fan_out
from .interfaces import Emitter

logger = logging.getLogger(__name__)

EVENT_USER_ONLINE = "user_online"
EVENT_USER_OFFLINE = "user_offline"
EVENT_ONLINE_USERS = "online_users"


class PresenceBroadcaster:

    def __init__(self, registry: ConnectionRegistry, emitter: Emitter) -> None:
        self._registry = registry
        self._emitter = emitter

    def online_users_payload(self) -> dict[str, Any]:
        return {"userIds": self._registry.list_online_user_ids()}

    async def announce_connect(self, session: Session, came_online: bool) -> None:
        """Broadcast after ``session`` has been registered.

        ``came_online`` must be the value ``register_session`` returned, so
        only the user's first session produces a ``user_online`` event.
        """
        if came_online:
            payload = {**session.identity.to_public(), "status": "online"}
            await fan_out(
                self._emitter,
                self._registry.all_session_ids(),
                EVENT_USER_ONLINE,
                payload,
                skip_sid=session.sid,
            )
            logger.info("User %s is online", session.user_id)

        await fan_out(
            self._emitter,
            self._registry.all_session_ids(),
            EVENT_ONLINE_USERS,
            self.online_users_payload(),
        )

    async def announce_disconnect(self, user_id: str, went_offline: bool) -> None:
        """Broadcast after a session of ``user_id`` has been removed."""
        if not went_offline:
            return

        last_seen = self._registry.last_seen(user_id)
        await fan_out(
            self._emitter,
            self._registry.all_session_ids(),
            EVENT_USER_OFFLINE,
            {
                "userId": user_id,
                "status": "offline",
                "lastSeen": last_seen.isoformat() if last_seen else None,
            },
        )
        logger.info("User %s is offline", user_id)

        await fan_out(
            self._emitter,
            self._registry.all_session_ids(),
            EVENT_ONLINE_USERS,
            self.online_users_payload(),
        )
