"""
DevConnect SQLAlchemy Models
============================

Central import point for the ORM models the realtime layer touches.
Import ``Base`` from here for ``create_all`` in tests.

Usage::

    from devconnect.models import Base, User, Notification
"""

from .base import Base, TimestampMixin, UUIDPrimaryKeyMixin
from .message import Message, MessageType
from .notification import Notification, NotificationType
from .user import User, UserRole

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
    "Message",
    "MessageType",
    "Notification",
    "NotificationType",
    "User",
    "UserRole",
]
