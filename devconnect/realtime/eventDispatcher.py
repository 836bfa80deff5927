"""
Event Fan-out Dispatcher
========================

Validates inbound client events, resolves their destinations through the
``RoomRouter`` and emits the outbound events.  It is also the bridge
REST handlers use to push to a user's live sessions (``push_to_user``).

Events emitted TO clients:
  receive_message       { messageId, senderId, senderName, senderAvatar,
                          receiverId, content, messageType, sentAt }
  message_notification  { messageId, senderId, senderName, content }
  message_sent          { messageId, receiverId, sentAt, delivered }
  user_typing / user_stop_typing
                        { userId, name, receiverId?, topic? }
  messages_read         { readBy, readAt, count }
  incoming_call | call_answered | call_rejected | call_ended | ice_candidate
                        { from, fromName, fromAvatar, signal }
  event_error           { event, error, details }

The sender of every event is the session's authenticated identity, never
a value supplied by the client.  A rejected event is answered with one
``event_error`` to the originating session and has no other effect.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from devconnect.core.config import settings

from .connectionRegistry import ConnectionRegistry, Session
from .emitter import fan_out
from .events import (
    CALL_EVENTS,
    CallSignal,
    EventRejected,
    MarkMessagesRead,
    OnlineUsersRequest,
    SendMessage,
    TopicMembership,
    TypingIndicator,
    parse_event,
)
from .interfaces import Emitter, MessageStore, NotificationStore
from .presenceBroadcaster import EVENT_ONLINE_USERS, PresenceBroadcaster
from .roomRouter import RoomRouter, topic_room

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Outbound event names
# ---------------------------------------------------------------------------

EVENT_RECEIVE_MESSAGE = "receive_message"
EVENT_MESSAGE_NOTIFICATION = "message_notification"
EVENT_MESSAGE_SENT = "message_sent"
EVENT_USER_TYPING = "user_typing"
EVENT_USER_STOP_TYPING = "user_stop_typing"
EVENT_MESSAGES_READ = "messages_read"
EVENT_ERROR = "event_error"

# Pushed by REST handlers through ``push_to_user``
EVENT_NEW_NOTIFICATION = "new_notification"
EVENT_NOTIFICATION_READ = "notification_read"
EVENT_ALL_NOTIFICATIONS_READ = "all_notifications_read"
EVENT_NOTIFICATION_DELETED = "notification_deleted"

# Call events not listed here are relayed under their inbound name
_CALL_OUTBOUND_NAMES: dict[str, str] = {
    "call_offer": "incoming_call",
    "call_answer": "call_answered",
    "call_reject": "call_rejected",
    "call_end": "call_ended",
}

CALL_RELAY_EVENTS: dict[str, str] = {
    name: _CALL_OUTBOUND_NAMES.get(name, name) for name in CALL_EVENTS
}


def preview(content: str, length: int | None = None) -> str:
    """Truncate message content for notification toasts."""
    length = length if length is not None else settings.message_preview_length
    if len(content) <= length:
        return content
    return content[:length] + "..."


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class EventDispatcher:

    def __init__(
        self,
        registry: ConnectionRegistry,
        router: RoomRouter,
        emitter: Emitter,
        presence: PresenceBroadcaster,
        notifications: NotificationStore,
        messages: MessageStore,
    ) -> None:
        self._registry = registry
        self._router = router
        self._emitter = emitter
        self._presence = presence
        self._notifications = notifications
        self._messages = messages

    # -----------------------------------------------------------------------
    # Inbound
    # -----------------------------------------------------------------------

    async def handle(self, sid: str, event: str, data: Any) -> dict[str, Any]:
        """Validate and route one inbound event.  Never raises.

        Returns:
            The acknowledgement sent back to the client's callback.
        """
        session = self._registry.get_session(sid)
        if session is None or not session.is_active:
            return await self._reject(sid, event, "Not authenticated")

        try:
            payload = parse_event(event, data)
            if isinstance(payload, SendMessage):
                return await self._send_message(session, payload)
            if isinstance(payload, TypingIndicator):
                return await self._typing(session, payload)
            if isinstance(payload, MarkMessagesRead):
                return await self._mark_messages_read(session, payload)
            if isinstance(payload, CallSignal):
                return await self._relay_call(session, payload)
            if isinstance(payload, TopicMembership):
                return self._topic_membership(session, payload)
            if isinstance(payload, OnlineUsersRequest):
                return await self._online_users(session)
            raise EventRejected(f"Unsupported event '{event}'")
        except EventRejected as exc:
            return await self._reject(sid, event, exc.message, exc.details)
        except Exception:
            logger.exception("Unhandled error processing %s from sid=%s", event, sid)
            return await self._reject(sid, event, "Internal error")

    async def _reject(
        self,
        sid: str,
        event: str,
        message: str,
        details: Optional[list[dict[str, Any]]] = None,
    ) -> dict[str, Any]:
        logger.info("Rejected %s from sid=%s: %s", event, sid, message)
        await fan_out(
            self._emitter,
            [sid],
            EVENT_ERROR,
            {"event": event, "error": message, "details": details or []},
        )
        return {"ok": False, "error": message}

    async def _send_message(self, session: Session, payload: SendMessage) -> dict[str, Any]:
        sender = session.identity
        message_id = payload.message_id or str(uuid.uuid4())
        sent_at = _now_iso()

        receivers = self._router.resolve_user(payload.receiver_id)
        delivered = await fan_out(
            self._emitter,
            receivers,
            EVENT_RECEIVE_MESSAGE,
            {
                "messageId": message_id,
                "senderId": sender.user_id,
                "senderName": sender.name,
                "senderAvatar": sender.avatar,
                "receiverId": payload.receiver_id,
                "content": payload.content,
                "messageType": payload.message_type.value,
                "sentAt": sent_at,
            },
        )
        await fan_out(
            self._emitter,
            receivers,
            EVENT_MESSAGE_NOTIFICATION,
            {
                "messageId": message_id,
                "senderId": sender.user_id,
                "senderName": sender.name,
                "content": preview(payload.content),
            },
        )

        # Acknowledge to the originating session only, even if nobody received it
        await fan_out(
            self._emitter,
            [session.sid],
            EVENT_MESSAGE_SENT,
            {
                "messageId": message_id,
                "receiverId": payload.receiver_id,
                "sentAt": sent_at,
                "delivered": delivered > 0,
            },
        )

        logger.info(
            "Message %s from user=%s to user=%s delivered to %d sessions",
            message_id, sender.user_id, payload.receiver_id, delivered,
        )
        return {"ok": True, "messageId": message_id, "sentAt": sent_at}

    async def _typing(self, session: Session, payload: TypingIndicator) -> dict[str, Any]:
        event = EVENT_USER_TYPING if payload.event == "typing" else EVENT_USER_STOP_TYPING
        data: dict[str, Any] = {
            "userId": session.user_id,
            "name": session.identity.name,
        }
        if payload.topic is not None:
            targets = self._router.resolve_topic(payload.topic)
            if session.sid not in targets:
                raise EventRejected(f"Not a member of topic '{payload.topic}'")
            data["topic"] = payload.topic
        else:
            targets = self._router.resolve_user(payload.receiver_id)
            data["receiverId"] = payload.receiver_id

        # Lightweight: no persistence, no delivery acknowledgement
        await fan_out(self._emitter, targets, event, data, skip_sid=session.sid)
        return {"ok": True}

    async def _mark_messages_read(
        self,
        session: Session,
        payload: MarkMessagesRead,
    ) -> dict[str, Any]:
        if payload.reader_id != session.user_id:
            raise EventRejected("readerId must be the authenticated user")

        try:
            count = await self._messages.mark_conversation_read(
                payload.sender_id,
                payload.reader_id,
            )
        except Exception:
            logger.exception(
                "Failed to mark messages from user=%s as read by user=%s",
                payload.sender_id, payload.reader_id,
            )
            return await self._reject(
                session.sid, payload.event, "Failed to mark messages as read"
            )

        read_at = _now_iso()
        # Resolved after the store call so sessions that connected meanwhile are included
        await fan_out(
            self._emitter,
            self._router.resolve_user(payload.sender_id),
            EVENT_MESSAGES_READ,
            {"readBy": payload.reader_id, "readAt": read_at, "count": count},
        )
        logger.info(
            "Read receipt: %d messages from user=%s read by user=%s",
            count, payload.sender_id, payload.reader_id,
        )
        return {"ok": True, "count": count, "readAt": read_at}

    async def _relay_call(self, session: Session, payload: CallSignal) -> dict[str, Any]:
        outbound = CALL_RELAY_EVENTS[payload.event]
        delivered = await fan_out(
            self._emitter,
            self._router.resolve_user(payload.peer_id),
            outbound,
            {
                "from": session.user_id,
                "fromName": session.identity.name,
                "fromAvatar": session.identity.avatar,
                "signal": payload.signal,
            },
        )
        logger.debug(
            "Relayed %s from user=%s to user=%s (%d sessions)",
            payload.event, session.user_id, payload.peer_id, delivered,
        )
        return {"ok": True, "delivered": delivered > 0}

    def _topic_membership(self, session: Session, payload: TopicMembership) -> dict[str, Any]:
        if payload.event == "join_topic":
            changed = self._router.join_topic(session.sid, payload.topic)
        else:
            changed = self._router.leave_topic(session.sid, payload.topic)
        return {"ok": True, "room": topic_room(payload.topic), "changed": changed}

    async def _online_users(self, session: Session) -> dict[str, Any]:
        data = self._presence.online_users_payload()
        await fan_out(self._emitter, [session.sid], EVENT_ONLINE_USERS, data)
        return {"ok": True, **data}

    # -----------------------------------------------------------------------
    # REST bridge
    # -----------------------------------------------------------------------

    async def push_to_user(self, user_id: str, event: str, payload: dict[str, Any]) -> bool:
        """Deliver ``event`` to every live session of ``user_id``.

        Fire-and-forget: a user with no live session is a silent no-op and
        any failure is logged, never raised.  The envelope always carries a
        freshly recomputed ``unreadCount``.

        Returns:
            True if at least one session was handed the event.
        """
        try:
            if not self._router.resolve_user(user_id):
                logger.debug("push %s to user=%s dropped -- no live sessions", event, user_id)
                return False

            unread = await self._notifications.count_unread(user_id)
            envelope = {**payload, "unreadCount": unread}
            delivered = await fan_out(
                self._emitter,
                self._router.resolve_user(user_id),
                event,
                envelope,
            )
            return delivered > 0
        except Exception:
            logger.exception("Failed to push %s to user=%s", event, user_id)
            return False

    async def notify_user(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        refs: Optional[dict[str, Any]] = None,
    ) -> Optional[dict[str, Any]]:
        """Persist a notification and push ``new_notification`` to the user.

        Returns:
            The stored notification, or None if the store call failed.
        """
        try:
            notification = await self._notifications.create(
                user_id, notification_type, title, message, refs
            )
        except Exception:
            logger.exception(
                "Error creating %s notification for user=%s", notification_type, user_id
            )
            return None

        await self.push_to_user(user_id, EVENT_NEW_NOTIFICATION, {"notification": notification})
        return notification
