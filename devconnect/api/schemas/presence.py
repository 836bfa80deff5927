"""
Pydantic v2 schemas for the presence endpoints.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from .common import CamelModel


class OnlineUsersResponse(CamelModel):
    user_ids: list[str]
    count: int


class UserPresenceResponse(CamelModel):
    user_id: str
    online: bool
    sessions: int
    online_since: Optional[datetime] = None
    last_seen: Optional[datetime] = None
