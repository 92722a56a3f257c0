"""Realtime push helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager, notification_manager
from .publisher import (
    SessionPublisher,
    serialize_connection,
    serialize_conversations,
    serialize_feed,
    serialize_message,
    serialize_notification,
    session_publisher,
)

__all__ = [
    "NotificationConnectionManager",
    "notification_manager",
    "SessionPublisher",
    "session_publisher",
    "serialize_connection",
    "serialize_conversations",
    "serialize_feed",
    "serialize_message",
    "serialize_notification",
]
