"""
Shared FastAPI dependencies for the DevConnect backend.

Provides the async engine and session factory, the realtime hub and
notification store dependencies, and the authentication dependency
that extracts the current user from a JWT Bearer token.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from devconnect.core.config import settings
from devconnect.realtime.authGate import AuthenticationError
from devconnect.realtime.connectionRegistry import IdentitySnapshot
from devconnect.realtime.hub import RealtimeHub
from devconnect.services.notificationStore import SqlNotificationStore

# ---------------------------------------------------------------------------
# Async engine & session factory
# ---------------------------------------------------------------------------
# The engine is created once at module import time.  The session factory
# produces lightweight ``AsyncSession`` instances scoped to a single
# store call.
# ---------------------------------------------------------------------------

engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Realtime collaborators
# ---------------------------------------------------------------------------

def get_hub() -> RealtimeHub:
    """Return the process-wide realtime hub owned by the Socket.IO server."""
    from devconnect.realtime.socketServer import hub

    return hub


def get_notification_store() -> SqlNotificationStore:
    return SqlNotificationStore(async_session_factory)


RealtimeHubDep = Annotated[RealtimeHub, Depends(get_hub)]
NotificationStoreDep = Annotated[SqlNotificationStore, Depends(get_notification_store)]


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

_bearer_scheme = HTTPBearer(auto_error=True)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    hub: RealtimeHubDep,
) -> IdentitySnapshot:
    """Validate the Bearer token with the same gate the socket server uses.

    Raises 401 if the token is missing, expired, or belongs to an inactive
    account.
    """
    try:
        return await hub.auth_gate.authenticate({"token": credentials.credentials})
    except AuthenticationError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )


CurrentUser = Annotated[IdentitySnapshot, Depends(get_current_user)]
