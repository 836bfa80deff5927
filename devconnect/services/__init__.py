"""Persistence-backed collaborators for the realtime core."""

from .messageStore import SqlMessageStore
from .notificationStore import SqlNotificationStore, serialize_notification
from .userDirectory import SqlUserDirectory

__all__ = [
    "SqlMessageStore",
    "SqlNotificationStore",
    "SqlUserDirectory",
    "serialize_notification",
]
