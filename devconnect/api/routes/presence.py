"""
Presence API Routes
===================

  GET /api/v1/presence/online        -- ids of every online user
  GET /api/v1/presence/{user_id}     -- online flag, session count, last seen

Reads come straight from this process's connection registry.
"""

from __future__ import annotations

from fastapi import APIRouter

from devconnect.api.deps import CurrentUser, RealtimeHubDep
from devconnect.api.schemas.presence import OnlineUsersResponse, UserPresenceResponse

router = APIRouter(prefix="/presence", tags=["Presence"])


@router.get(
    "/online",
    response_model=OnlineUsersResponse,
    response_model_by_alias=True,
    summary="List online users",
)
async def list_online_users(user: CurrentUser, hub: RealtimeHubDep) -> OnlineUsersResponse:
    user_ids = hub.registry.list_online_user_ids()
    return OnlineUsersResponse(user_ids=user_ids, count=len(user_ids))


@router.get(
    "/{user_id}",
    response_model=UserPresenceResponse,
    response_model_by_alias=True,
    summary="Get a user's presence",
)
async def get_user_presence(
    user_id: str,
    user: CurrentUser,
    hub: RealtimeHubDep,
) -> UserPresenceResponse:
    entry = hub.registry.presence(user_id)
    return UserPresenceResponse(
        user_id=user_id,
        online=entry is not None,
        sessions=len(entry.session_ids) if entry else 0,
        online_since=entry.online_since if entry else None,
        last_seen=hub.registry.last_seen(user_id),
    )
