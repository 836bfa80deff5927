"""
Pydantic v2 schemas for the notification endpoints.
"""

from __future__ import annotations

from typing import Optional

from .common import CamelModel


class UnreadCountResponse(CamelModel):
    unread_count: int


class NotificationReadResponse(CamelModel):
    success: bool = True
    notification_id: Optional[str] = None
    updated: int = 0
    unread_count: int
