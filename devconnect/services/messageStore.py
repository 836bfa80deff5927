"""
Message Store -- read receipts for direct messages.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from devconnect.models.message import Message

logger = logging.getLogger(__name__)


class SqlMessageStore:

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def mark_conversation_read(self, sender_id: str, reader_id: str) -> int:
        """Mark every unread message ``sender_id`` sent to ``reader_id`` as read.

        Returns:
            The number of messages updated.
        """
        async with self._session_factory() as db:
            stmt = (
                update(Message)
                .where(
                    Message.sender_id == uuid.UUID(str(sender_id)),
                    Message.receiver_id == uuid.UUID(str(reader_id)),
                    Message.read.is_(False),
                )
                .values(read=True, read_at=datetime.now(timezone.utc))
            )
            result = await db.execute(stmt)
            await db.commit()
        logger.debug("Marked %d messages read (sender=%s reader=%s)",
                     result.rowcount, sender_id, reader_id)
        return result.rowcount
