"""Pydantic schemas exposed by the HTTP API."""

from .message import (
    ConversationRead,
    ConversationSummaryRead,
    MessageCreate,
    MessageRead,
)
from .notification import (
    NotificationFeedRead,
    NotificationMarkReadRequest,
    NotificationRead,
    NotificationUserRead,
)
from .realtime import ConnectionStatusRead, RealtimeToggleRequest

__all__ = [
    "ConnectionStatusRead",
    "ConversationRead",
    "ConversationSummaryRead",
    "MessageCreate",
    "MessageRead",
    "NotificationFeedRead",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "NotificationUserRead",
    "RealtimeToggleRequest",
]
