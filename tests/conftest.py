"""
Shared pytest fixtures for the DevConnect realtime tests.

Provides a recording emitter standing in for the Socket.IO server, an
in-memory user directory, mocked notification/message stores, and a
fully wired ``RealtimeHub`` -- no sockets or database required.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional
from unittest.mock import AsyncMock

import pytest

from devconnect.realtime.authGate import AuthGate
from devconnect.realtime.connectionRegistry import ConnectionRegistry, IdentitySnapshot
from devconnect.realtime.hub import RealtimeHub
from devconnect.realtime.presenceBroadcaster import PresenceBroadcaster
from devconnect.realtime.roomRouter import RoomRouter
from devconnect.services.auth_service import create_access_token, decode_token


# ---------------------------------------------------------------------------
# Test doubles
# ---------------------------------------------------------------------------


class RecordingEmitter:
    """Collects every emission as ``(sid, event, data)``."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str, Any]] = []
        self.failing_sids: set[str] = set()

    async def emit(self, event: str, data: Any, *, to: str) -> None:
        if to in self.failing_sids:
            raise RuntimeError(f"transport closed for {to}")
        self.sent.append((to, event, data))

    def to(self, sid: str) -> list[tuple[str, Any]]:
        return [(event, data) for s, event, data in self.sent if s == sid]

    def events_for(self, sid: str) -> list[str]:
        return [event for s, event, _ in self.sent if s == sid]

    def of(self, event: str) -> list[tuple[str, Any]]:
        return [(sid, data) for sid, e, data in self.sent if e == event]

    def clear(self) -> None:
        self.sent.clear()


class InMemoryUserDirectory:
    def __init__(self) -> None:
        self.users: dict[str, IdentitySnapshot] = {}

    def add(self, name: str, role: str = "developer", avatar: Optional[str] = None) -> IdentitySnapshot:
        identity = IdentitySnapshot(
            user_id=str(uuid.uuid4()),
            name=name,
            avatar=avatar,
            role=role,
        )
        self.users[identity.user_id] = identity
        return identity

    async def find_active_user(self, user_id: str) -> Optional[IdentitySnapshot]:
        return self.users.get(user_id)


def token_for(identity: IdentitySnapshot) -> str:
    token, _ = create_access_token(identity.user_id)
    return token


def auth_for(identity: IdentitySnapshot) -> dict[str, str]:
    return {"token": token_for(identity)}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def emitter() -> RecordingEmitter:
    return RecordingEmitter()


@pytest.fixture
def registry() -> ConnectionRegistry:
    return ConnectionRegistry()


@pytest.fixture
def router() -> RoomRouter:
    return RoomRouter()


@pytest.fixture
def presence(registry: ConnectionRegistry, emitter: RecordingEmitter) -> PresenceBroadcaster:
    return PresenceBroadcaster(registry, emitter)


@pytest.fixture
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture
def alice(users: InMemoryUserDirectory) -> IdentitySnapshot:
    return users.add("Alice", role="developer", avatar="https://cdn.example.com/alice.png")


@pytest.fixture
def bob(users: InMemoryUserDirectory) -> IdentitySnapshot:
    return users.add("Bob", role="recruiter")


@pytest.fixture
def notification_store() -> AsyncMock:
    """Async mock of the notification store with 3 unread notifications."""
    store = AsyncMock()
    store.count_unread.return_value = 3
    store.create.side_effect = lambda user_id, ntype, title, message, refs=None: {
        "id": str(uuid.uuid4()),
        "userId": user_id,
        "type": ntype,
        "title": title,
        "message": message,
        "data": refs or {},
        "isRead": False,
    }
    return store


@pytest.fixture
def message_store() -> AsyncMock:
    store = AsyncMock()
    store.mark_conversation_read.return_value = 2
    return store


@pytest.fixture
def auth_gate(users: InMemoryUserDirectory) -> AuthGate:
    return AuthGate(decode_token, users)


@pytest.fixture
def hub(
    emitter: RecordingEmitter,
    auth_gate: AuthGate,
    notification_store: AsyncMock,
    message_store: AsyncMock,
    registry: ConnectionRegistry,
    router: RoomRouter,
) -> RealtimeHub:
    return RealtimeHub(
        emitter=emitter,
        auth_gate=auth_gate,
        notifications=notification_store,
        messages=message_store,
        registry=registry,
        router=router,
    )
