"""
Realtime hub -- one instance per process.

Composes the registry, router, presence broadcaster, dispatcher and
authentication gate, and drives a session through its lifecycle:

  CONNECTING -> AUTHENTICATED -> ACTIVE -> DISCONNECTED

Connect: the gate runs first (the only await before registration), then
register + personal-room join + activation happen with no await in
between, then presence is announced.  A disconnect that arrives while the
gate is still awaited is remembered, and the connect is then abandoned
without registering.  Disconnect: lookup + room cleanup + removal happen
with no await in between, then presence is announced.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from .authGate import AuthGate
from .connectionRegistry import ConnectionRegistry, Session, SessionState
from .eventDispatcher import EventDispatcher
from .interfaces import Emitter, MessageStore, NotificationStore
from .presenceBroadcaster import PresenceBroadcaster
from .roomRouter import RoomRouter

logger = logging.getLogger(__name__)


class RealtimeHub:

    def __init__(
        self,
        emitter: Emitter,
        auth_gate: AuthGate,
        notifications: NotificationStore,
        messages: MessageStore,
        *,
        registry: Optional[ConnectionRegistry] = None,
        router: Optional[RoomRouter] = None,
    ) -> None:
        self.registry = registry or ConnectionRegistry()
        # sids whose connect is still awaiting the gate, and those closed meanwhile
        self._pending: set[str] = set()
        self._closed_while_pending: set[str] = set()
        self.router = router or RoomRouter()
        self.auth_gate = auth_gate
        self.presence = PresenceBroadcaster(self.registry, emitter)
        self.dispatcher = EventDispatcher(
            self.registry,
            self.router,
            emitter,
            self.presence,
            notifications,
            messages,
        )

    async def connect(
        self,
        sid: str,
        auth: Optional[Mapping[str, Any]],
        environ: Optional[Mapping[str, Any]] = None,
    ) -> Optional[Session]:
        """Authenticate and admit a new connection.

        Returns:
            The active session, or None if the transport closed while the
            credential was being checked.  Nothing is registered then.

        Raises:
            AuthenticationError: The connection must be refused.  Nothing
                has been registered and no presence change is broadcast.
        """
        self._pending.add(sid)
        try:
            identity = await self.auth_gate.authenticate(auth, environ)
        finally:
            self._pending.discard(sid)
            closed = sid in self._closed_while_pending
            self._closed_while_pending.discard(sid)

        if closed:
            logger.info("Connect abandoned: sid=%s closed during authentication", sid)
            return None

        existing = self.registry.get_session(sid)
        if existing is not None and existing.user_id == identity.user_id:
            return existing

        came_online = self.registry.register_session(identity.user_id, sid, identity)
        session = self.registry.get_session(sid)
        room = self.router.attach(session)
        session.transition(SessionState.ACTIVE)

        logger.info("Connected: sid=%s user_id=%s room=%s", sid, identity.user_id, room)
        await self.presence.announce_connect(session, came_online)
        return session

    async def disconnect(self, sid: str) -> None:
        """Tear down a session.  Duplicate or unknown disconnects are a no-op."""
        session = self.registry.get_session(sid)
        if session is None:
            if sid in self._pending:
                self._closed_while_pending.add(sid)
            logger.info("Disconnected: sid=%s (no registered user)", sid)
            return

        self.router.detach(sid)
        went_offline = self.registry.remove_session(session.user_id, sid)
        logger.info("Disconnected: sid=%s user_id=%s", sid, session.user_id)
        await self.presence.announce_disconnect(session.user_id, went_offline)

    async def handle(self, sid: str, event: str, data: Any) -> dict[str, Any]:
        return await self.dispatcher.handle(sid, event, data)

    async def push_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> bool:
        return await self.dispatcher.push_to_user(user_id, event, payload)

    async def notify_user(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        refs: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        return await self.dispatcher.notify_user(
            user_id, notification_type, title, message, refs
        )
