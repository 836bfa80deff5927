"""
Connection Registry
===================

Authoritative, process-local record of which transport sessions are live
and which user owns each of them.  One user may hold many sessions at
once (several browser tabs, phone + laptop); the user is "online" for as
long as at least one of them is live.

Every mutation here is synchronous.  Callers running on the event loop
can therefore rely on each call being atomic with respect to other
handlers -- there is never an ``await`` between the check and the act.

Nothing is persisted: after a restart the registry is empty and clients
reconnect.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Session state machine
# ---------------------------------------------------------------------------

class SessionState(str, enum.Enum):
    CONNECTING = "connecting"
    AUTHENTICATED = "authenticated"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"


VALID_TRANSITIONS: dict[SessionState, frozenset[SessionState]] = {
    SessionState.CONNECTING: frozenset({SessionState.AUTHENTICATED, SessionState.DISCONNECTED}),
    SessionState.AUTHENTICATED: frozenset({SessionState.ACTIVE, SessionState.DISCONNECTED}),
    SessionState.ACTIVE: frozenset({SessionState.DISCONNECTED}),
    SessionState.DISCONNECTED: frozenset(),
}


class InvalidSessionTransition(Exception):
    """Raised when a session is moved along an edge the state machine forbids."""

    def __init__(self, current: SessionState, target: SessionState) -> None:
        super().__init__(f"Cannot move session from '{current.value}' to '{target.value}'")
        self.current = current
        self.target = target


# ---------------------------------------------------------------------------
# Data objects
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IdentitySnapshot:
    """Who the session belongs to, captured once at connect time."""

    user_id: str
    name: str
    avatar: Optional[str] = None
    role: Optional[str] = None

    def to_public(self) -> dict[str, Optional[str]]:
        return {
            "userId": self.user_id,
            "name": self.name,
            "avatar": self.avatar,
            "role": self.role,
        }


@dataclass
class Session:
    """One live transport connection."""

    sid: str
    user_id: str
    identity: IdentitySnapshot
    connected_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    state: SessionState = SessionState.CONNECTING

    def transition(self, target: SessionState) -> None:
        if target not in VALID_TRANSITIONS[self.state]:
            raise InvalidSessionTransition(self.state, target)
        self.state = target

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE


@dataclass
class PresenceEntry:
    """Derived online status; exists only while the user has a live session."""

    user_id: str
    session_ids: set[str] = field(default_factory=set)
    online_since: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class ConnectionRegistry:
    """In-memory map of user id -> live sessions, plus last-seen times."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._presence: dict[str, PresenceEntry] = {}
        self._last_seen: dict[str, datetime] = {}

    # -- mutations ----------------------------------------------------------

    def register_session(
        self,
        user_id: str,
        session_id: str,
        identity: IdentitySnapshot,
    ) -> bool:
        """Record a live session for ``user_id``.

        Idempotent per ``session_id``.  Other sessions of the same user are
        left untouched.

        Returns:
            True if the user just went from offline to online.
        """
        existing = self._sessions.get(session_id)
        if existing is not None:
            if existing.user_id != user_id:
                raise ValueError(
                    f"Session {session_id} is already registered to user {existing.user_id}"
                )
            return False

        session = Session(sid=session_id, user_id=user_id, identity=identity)
        session.transition(SessionState.AUTHENTICATED)
        self._sessions[session_id] = session

        entry = self._presence.get(user_id)
        came_online = entry is None
        if came_online:
            entry = PresenceEntry(user_id=user_id)
            self._presence[user_id] = entry
        entry.session_ids.add(session_id)

        logger.debug(
            "Registered sid=%s user_id=%s (sessions=%d)",
            session_id, user_id, len(entry.session_ids),
        )
        return came_online

    def remove_session(self, user_id: str, session_id: str) -> bool:
        """Drop a session.  No-op if it is already gone.

        Returns:
            True if that was the user's last session (online -> offline).
        """
        session = self._sessions.get(session_id)
        if session is None or session.user_id != user_id:
            return False

        del self._sessions[session_id]
        if session.state != SessionState.DISCONNECTED:
            session.transition(SessionState.DISCONNECTED)

        entry = self._presence.get(user_id)
        if entry is None:
            return False
        entry.session_ids.discard(session_id)
        if entry.session_ids:
            return False

        del self._presence[user_id]
        self._last_seen[user_id] = datetime.now(timezone.utc)
        logger.debug("User %s has no live sessions left", user_id)
        return True

    # -- queries ------------------------------------------------------------

    def get_session(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._presence

    def list_online_user_ids(self) -> list[str]:
        return list(self._presence)

    def sessions_for(self, user_id: str) -> frozenset[str]:
        entry = self._presence.get(user_id)
        return frozenset(entry.session_ids) if entry else frozenset()

    def all_session_ids(self) -> list[str]:
        return list(self._sessions)

    def presence(self, user_id: str) -> PresenceEntry | None:
        return self._presence.get(user_id)

    def last_seen(self, user_id: str) -> datetime | None:
        return self._last_seen.get(user_id)

    def __len__(self) -> int:
        return len(self._sessions)
