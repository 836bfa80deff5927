"""
Room Router
===========

Explicit many-to-many relation between sessions and named delivery
channels, kept independent of the transport library so routing can be
exercised without a live socket.

Room naming:
  - ``user_<user_id>``  -- personal channel, joined on connect, left only
    on disconnect.  Every session of the user is a member.
  - ``topic_<name>``    -- ad-hoc channel (chat thread, call session),
    joined and left on explicit request.

The distinct prefixes mean a topic request can never land a session in
somebody else's personal channel.
"""

from __future__ import annotations

import logging

from .connectionRegistry import Session

logger = logging.getLogger(__name__)

_USER_ROOM_PREFIX = "user_"
_TOPIC_ROOM_PREFIX = "topic_"


def user_room(user_id: str) -> str:
    """Return the personal channel name for a user."""
    return f"{_USER_ROOM_PREFIX}{user_id}"


def topic_room(topic: str) -> str:
    """Return the channel name for an ad-hoc topic."""
    return f"{_TOPIC_ROOM_PREFIX}{topic}"


class RoomRouter:
    """Tracks room membership and resolves destinations to session ids."""

    def __init__(self) -> None:
        self._members: dict[str, set[str]] = {}
        self._rooms_by_sid: dict[str, set[str]] = {}
        self._personal: dict[str, str] = {}

    # -- membership ---------------------------------------------------------

    def attach(self, session: Session) -> str:
        """Join a freshly registered session to its personal channel."""
        room = user_room(session.user_id)
        self._personal[session.sid] = room
        self._add(session.sid, room)
        return room

    def detach(self, session_id: str) -> set[str]:
        """Remove every membership of a session.  Returns the rooms it left."""
        rooms = self._rooms_by_sid.pop(session_id, set())
        self._personal.pop(session_id, None)
        for room in rooms:
            members = self._members.get(room)
            if members is None:
                continue
            members.discard(session_id)
            if not members:
                del self._members[room]
        return rooms

    def join_topic(self, session_id: str, topic: str) -> bool:
        """Add the session to a topic.  Returns False if nothing changed."""
        if session_id not in self._rooms_by_sid:
            logger.debug("join_topic ignored for unknown sid=%s", session_id)
            return False
        room = topic_room(topic)
        if room in self._rooms_by_sid[session_id]:
            return False
        self._add(session_id, room)
        logger.info("sid=%s joined room %s", session_id, room)
        return True

    def leave_topic(self, session_id: str, topic: str) -> bool:
        """Remove the session from a topic.  Returns False if it was not a member."""
        room = topic_room(topic)
        rooms = self._rooms_by_sid.get(session_id)
        if not rooms or room not in rooms:
            return False
        rooms.discard(room)
        members = self._members.get(room)
        if members is not None:
            members.discard(session_id)
            if not members:
                del self._members[room]
        logger.info("sid=%s left room %s", session_id, room)
        return True

    def _add(self, session_id: str, room: str) -> None:
        self._members.setdefault(room, set()).add(session_id)
        self._rooms_by_sid.setdefault(session_id, set()).add(room)

    # -- resolution ---------------------------------------------------------

    def resolve(self, room: str) -> frozenset[str]:
        """Return the sessions currently in ``room`` (empty if nobody is listening)."""
        return frozenset(self._members.get(room, ()))

    def resolve_user(self, user_id: str) -> frozenset[str]:
        return self.resolve(user_room(user_id))

    def resolve_topic(self, topic: str) -> frozenset[str]:
        return self.resolve(topic_room(topic))

    def rooms_of(self, session_id: str) -> frozenset[str]:
        return frozenset(self._rooms_by_sid.get(session_id, ()))

    def room_size(self, room: str) -> int:
        return len(self._members.get(room, ()))
