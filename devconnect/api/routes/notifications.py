"""
Notification API Routes
=======================

REST endpoints whose writes are mirrored to the user's live sessions:

  GET    /api/v1/notifications/unread-count      -- Unread count
  PATCH  /api/v1/notifications/read-all          -- Mark all as read
  PATCH  /api/v1/notifications/{id}/read         -- Mark one as read
  DELETE /api/v1/notifications/{id}              -- Delete one

The live push happens after the write has committed and is best-effort:
a push failure never changes the response.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, HTTPException, status

from devconnect.api.deps import CurrentUser, NotificationStoreDep, RealtimeHubDep
from devconnect.api.schemas.notification import (
    NotificationReadResponse,
    UnreadCountResponse,
)
from devconnect.realtime.eventDispatcher import (
    EVENT_ALL_NOTIFICATIONS_READ,
    EVENT_NOTIFICATION_DELETED,
    EVENT_NOTIFICATION_READ,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Notification not found",
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    response_model_by_alias=True,
    summary="Unread notification count",
)
async def unread_count(user: CurrentUser, store: NotificationStoreDep) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await store.count_unread(user.user_id))


@router.patch(
    "/read-all",
    response_model=NotificationReadResponse,
    response_model_by_alias=True,
    summary="Mark all notifications as read",
)
async def mark_all_read(
    user: CurrentUser,
    store: NotificationStoreDep,
    hub: RealtimeHubDep,
) -> NotificationReadResponse:
    updated = await store.mark_all_read(user.user_id)
    await hub.push_to_user(user.user_id, EVENT_ALL_NOTIFICATIONS_READ, {})
    return NotificationReadResponse(updated=updated, unread_count=0)


@router.patch(
    "/{notification_id}/read",
    response_model=NotificationReadResponse,
    response_model_by_alias=True,
    summary="Mark a notification as read",
)
async def mark_read(
    notification_id: uuid.UUID,
    user: CurrentUser,
    store: NotificationStoreDep,
    hub: RealtimeHubDep,
) -> NotificationReadResponse:
    if not await store.mark_read(user.user_id, str(notification_id)):
        raise _not_found()

    await hub.push_to_user(
        user.user_id,
        EVENT_NOTIFICATION_READ,
        {"notificationId": str(notification_id)},
    )
    return NotificationReadResponse(
        notification_id=str(notification_id),
        updated=1,
        unread_count=await store.count_unread(user.user_id),
    )


@router.delete(
    "/{notification_id}",
    response_model=NotificationReadResponse,
    response_model_by_alias=True,
    summary="Delete a notification",
)
async def delete_notification(
    notification_id: uuid.UUID,
    user: CurrentUser,
    store: NotificationStoreDep,
    hub: RealtimeHubDep,
) -> NotificationReadResponse:
    if not await store.delete(user.user_id, str(notification_id)):
        raise _not_found()

    await hub.push_to_user(
        user.user_id,
        EVENT_NOTIFICATION_DELETED,
        {"notificationId": str(notification_id)},
    )
    logger.info("Notification %s deleted by user=%s", notification_id, user.user_id)
    return NotificationReadResponse(
        notification_id=str(notification_id),
        updated=1,
        unread_count=await store.count_unread(user.user_id),
    )
