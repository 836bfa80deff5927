"""
User directory backed by the ``users`` table.

Resolves a token subject to an active account and builds the identity
snapshot attached to a realtime session.
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devconnect.models.user import User
from devconnect.realtime.connectionRegistry import IdentitySnapshot

logger = logging.getLogger(__name__)


def _parse_uuid(value: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


class SqlUserDirectory:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_active_user(self, user_id: str) -> Optional[IdentitySnapshot]:
        """Return the identity of an active user, or None."""
        uid = _parse_uuid(user_id)
        if uid is None:
            logger.warning("Token subject %r is not a valid user id", user_id)
            return None

        async with self._session_factory() as db:
            stmt = select(User).where(User.id == uid, User.is_active.is_(True))
            result = await db.execute(stmt)
            user = result.scalar_one_or_none()

        if user is None:
            return None
        return IdentitySnapshot(
            user_id=str(user.id),
            name=user.name,
            avatar=user.avatar_url,
            role=user.role.value if user.role else None,
        )
