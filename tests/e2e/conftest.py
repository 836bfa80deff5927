"""
E2E test fixtures for the DevConnect realtime backend.

Provides:
- An async SQLite database (in-memory, one per test) with the ORM schema
- Seed users: two active accounts and one deactivated account
- A ``RealtimeHub`` wired to the SQL-backed directory and stores, with a
  recording emitter in place of the Socket.IO server
- An in-process FastAPI test app with the presence and notification
  routes, reached through an httpx AsyncClient over ASGI transport
"""

from __future__ import annotations

import uuid
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

from devconnect.api.deps import get_hub, get_notification_store
from devconnect.api.routes.notifications import router as notifications_router
from devconnect.api.routes.presence import router as presence_router
from devconnect.models import Base, User, UserRole
from devconnect.realtime.authGate import AuthGate
from devconnect.realtime.hub import RealtimeHub
from devconnect.services.auth_service import create_access_token, decode_token
from devconnect.services.messageStore import SqlMessageStore
from devconnect.services.notificationStore import SqlNotificationStore
from devconnect.services.userDirectory import SqlUserDirectory


@compiles(JSONB, "sqlite")
def compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


# ---------------------------------------------------------------------------
# Test IDs (stable across tests so cross-references work)
# ---------------------------------------------------------------------------

ALICE_ID = uuid.UUID("aaaaaaaa-aaaa-aaaa-aaaa-aaaaaaaaaaaa")
BOB_ID = uuid.UUID("bbbbbbbb-bbbb-bbbb-bbbb-bbbbbbbbbbbb")
INACTIVE_ID = uuid.UUID("cccccccc-cccc-cccc-cccc-cccccccccccc")

TEST_DB_URL = "sqlite+aiosqlite://"


def auth_headers(user_id: uuid.UUID) -> dict[str, str]:
    token, _ = create_access_token(str(user_id))
    return {"Authorization": f"Bearer {token}"}


def socket_auth(user_id: uuid.UUID) -> dict[str, str]:
    token, _ = create_access_token(str(user_id))
    return {"token": token}


# ---------------------------------------------------------------------------
# Database
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def engine():
    """In-memory SQLite engine; StaticPool keeps one shared connection."""
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def seeded_users(session_factory) -> dict[str, User]:
    users = {
        "alice": User(
            id=ALICE_ID,
            name="Alice",
            email="alice@devconnect.test",
            avatar_url="https://cdn.devconnect.test/alice.png",
            role=UserRole.DEVELOPER,
            is_active=True,
        ),
        "bob": User(
            id=BOB_ID,
            name="Bob",
            email="bob@devconnect.test",
            role=UserRole.RECRUITER,
            is_active=True,
        ),
        "inactive": User(
            id=INACTIVE_ID,
            name="Carol",
            email="carol@devconnect.test",
            role=UserRole.COMPANY,
            is_active=False,
        ),
    }
    async with session_factory() as db:
        db.add_all(users.values())
        await db.commit()
    return users


# ---------------------------------------------------------------------------
# Realtime + stores
# ---------------------------------------------------------------------------


@pytest.fixture
def sql_notifications(session_factory) -> SqlNotificationStore:
    return SqlNotificationStore(session_factory)


@pytest.fixture
def sql_messages(session_factory) -> SqlMessageStore:
    return SqlMessageStore(session_factory)


@pytest.fixture
def user_directory(session_factory) -> SqlUserDirectory:
    return SqlUserDirectory(session_factory)


@pytest.fixture
def realtime_hub(emitter, user_directory, sql_notifications, sql_messages) -> RealtimeHub:
    return RealtimeHub(
        emitter=emitter,
        auth_gate=AuthGate(decode_token, user_directory),
        notifications=sql_notifications,
        messages=sql_messages,
    )


# ---------------------------------------------------------------------------
# App + client
# ---------------------------------------------------------------------------


def _create_test_app(hub: RealtimeHub, store: SqlNotificationStore) -> FastAPI:
    app = FastAPI()
    app.dependency_overrides[get_hub] = lambda: hub
    app.dependency_overrides[get_notification_store] = lambda: store
    app.include_router(presence_router, prefix="/api/v1")
    app.include_router(notifications_router, prefix="/api/v1")
    return app


@pytest_asyncio.fixture
async def client(
    seeded_users,
    realtime_hub,
    sql_notifications,
) -> AsyncGenerator[AsyncClient, None]:
    """httpx AsyncClient connected to the test app via ASGI transport."""
    app = _create_test_app(realtime_hub, sql_notifications)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
