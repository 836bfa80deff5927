"""
Inbound event payloads
======================

Every client -> server event is modelled as one variant of a tagged
union, discriminated by the Socket.IO event name.  Payloads are validated
here, at the dispatcher boundary, before any routing happens.

Field names are accepted in camelCase (the web client convention) or
snake_case.

Events received FROM clients:
  send_message         { receiverId, content, messageType?, messageId? }
  typing / stop_typing { receiverId? | topic? }
  mark_messages_read   { senderId, readerId }
  call_offer | call_answer | call_reject | call_end | ice_candidate
                       { peerId, signal }
  join_topic / leave_topic { topic }
  get_online_users     {}
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Annotated, Any, Literal, Optional, Union, get_args

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from devconnect.api.schemas.common import to_camel
from devconnect.core.config import settings
from devconnect.models.message import MessageType


class EventModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        str_strip_whitespace=True,
        extra="ignore",
    )


_UserId = Annotated[str, Field(min_length=1, max_length=64)]
_Topic = Annotated[str, Field(min_length=1, max_length=200)]


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------

class SendMessage(EventModel):
    event: Literal["send_message"]
    receiver_id: _UserId
    content: str
    message_type: MessageType = MessageType.TEXT
    message_id: Optional[str] = None

    @field_validator("content")
    @classmethod
    def _content_not_blank(cls, value: str) -> str:
        if not value:
            raise ValueError("content must not be empty")
        if len(value) > settings.max_message_length:
            raise ValueError(
                f"content cannot exceed {settings.max_message_length} characters"
            )
        return value


class TypingIndicator(EventModel):
    event: Literal["typing", "stop_typing"]
    receiver_id: Optional[_UserId] = None
    topic: Optional[_Topic] = None

    @model_validator(mode="after")
    def _needs_destination(self) -> "TypingIndicator":
        if self.receiver_id is None and self.topic is None:
            raise ValueError("receiverId or topic is required")
        return self


class MarkMessagesRead(EventModel):
    event: Literal["mark_messages_read"]
    sender_id: _UserId
    reader_id: _UserId

    @field_validator("sender_id", "reader_id")
    @classmethod
    def _valid_user_id(cls, value: str) -> str:
        try:
            uuid.UUID(value)
        except ValueError:
            raise ValueError("must be a valid user id")
        return value


# ---------------------------------------------------------------------------
# Call signaling
# ---------------------------------------------------------------------------

CallEventName = Literal["call_offer", "call_answer", "call_reject", "call_end", "ice_candidate"]

CALL_EVENTS: tuple[str, ...] = get_args(CallEventName)


class CallSignal(EventModel):
    """Opaque WebRTC signaling relayed between two peers."""

    event: CallEventName
    peer_id: _UserId
    signal: Any = Field(...)

    @field_validator("signal")
    @classmethod
    def _signal_present(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("signal is required")
        return value


# ---------------------------------------------------------------------------
# Rooms / presence
# ---------------------------------------------------------------------------

class TopicMembership(EventModel):
    event: Literal["join_topic", "leave_topic"]
    topic: _Topic


class OnlineUsersRequest(EventModel):
    event: Literal["get_online_users"]


InboundEvent = Annotated[
    Union[
        SendMessage,
        TypingIndicator,
        MarkMessagesRead,
        CallSignal,
        TopicMembership,
        OnlineUsersRequest,
    ],
    Field(discriminator="event"),
]

_adapter: TypeAdapter[Any] = TypeAdapter(InboundEvent)


class EventRejected(Exception):
    """An inbound event that cannot be processed as sent."""

    def __init__(self, message: str, details: Optional[list[dict[str, Any]]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


def parse_event(name: str, data: Any) -> Any:
    """Validate ``data`` as the payload of event ``name``.

    Raises:
        EventRejected: If the payload is not an object or fails validation.
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        raise EventRejected("Payload must be an object")
    try:
        return _adapter.validate_python({**data, "event": name})
    except ValidationError as exc:
        details = []
        for error in exc.errors():
            loc = [str(part) for part in error["loc"]]
            if loc and loc[0] == name:
                loc = loc[1:]
            details.append({"field": ".".join(loc) or None, "message": error["msg"]})
        raise EventRejected("Invalid payload", details) from exc
