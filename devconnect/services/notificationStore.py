"""
Notification Store -- in-app notification persistence.

Creates notification records, keeps unread counts, and flips read flags.
The realtime dispatcher calls ``count_unread`` whenever it builds a
notification envelope and ``create`` for ``notify_user``; the REST
notification routes use the remaining operations.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devconnect.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Render a notification the way clients receive it."""
    return {
        "id": str(notification.id),
        "userId": str(notification.user_id),
        "type": notification.notification_type.value,
        "title": notification.title,
        "message": notification.message,
        "data": notification.data_json or {},
        "isRead": notification.is_read,
        "readAt": notification.read_at.isoformat() if notification.read_at else None,
        "createdAt": notification.created_at.isoformat() if notification.created_at else None,
    }


def _stringify_refs(refs: Optional[dict[str, Any]]) -> dict[str, Any]:
    # UUIDs from callers are stored as strings so the JSON column accepts them
    return {key: str(value) if isinstance(value, uuid.UUID) else value
            for key, value in (refs or {}).items()}


class SqlNotificationStore:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        user_id: str,
        notification_type: str,
        title: str,
        message: str,
        refs: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Persist a notification and return its client representation.

        Raises:
            ValueError: If ``notification_type`` is not a known type.
        """
        ntype = NotificationType(notification_type)
        now = datetime.now(timezone.utc)
        async with self._session_factory() as db:
            notification = Notification(
                user_id=uuid.UUID(str(user_id)),
                notification_type=ntype,
                title=title,
                message=message,
                data_json=_stringify_refs(refs),
                is_read=False,
                created_at=now,
                updated_at=now,
            )
            db.add(notification)
            await db.commit()
            logger.info("Created %s notification for user=%s", ntype.value, user_id)
            return serialize_notification(notification)

    async def count_unread(self, user_id: str) -> int:
        async with self._session_factory() as db:
            stmt = select(func.count()).select_from(Notification).where(
                Notification.user_id == uuid.UUID(str(user_id)),
                Notification.is_read.is_(False),
            )
            result = await db.execute(stmt)
            return int(result.scalar_one())

    async def mark_read(self, user_id: str, notification_id: str) -> bool:
        """Mark one of the user's notifications as read.

        Returns:
            False if no such notification belongs to the user.
        """
        async with self._session_factory() as db:
            stmt = (
                update(Notification)
                .where(
                    Notification.id == uuid.UUID(str(notification_id)),
                    Notification.user_id == uuid.UUID(str(user_id)),
                )
                .values(is_read=True, read_at=datetime.now(timezone.utc))
            )
            result = await db.execute(stmt)
            await db.commit()
            return result.rowcount > 0

    async def mark_all_read(self, user_id: str) -> int:
        async with self._session_factory() as db:
            stmt = (
                update(Notification)
                .where(
                    Notification.user_id == uuid.UUID(str(user_id)),
                    Notification.is_read.is_(False),
                )
                .values(is_read=True, read_at=datetime.now(timezone.utc))
            )
            result = await db.execute(stmt)
            await db.commit()
            return result.rowcount

    async def delete(self, user_id: str, notification_id: str) -> bool:
        async with self._session_factory() as db:
            stmt = delete(Notification).where(
                Notification.id == uuid.UUID(str(notification_id)),
                Notification.user_id == uuid.UUID(str(user_id)),
            )
            result = await db.execute(stmt)
            await db.commit()
            return result.rowcount > 0
