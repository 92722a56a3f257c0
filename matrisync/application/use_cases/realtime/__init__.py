"""Realtime channel lifecycle and event routing."""

from .subscription import (
    CHANNEL_ERROR_MESSAGE,
    TIMED_OUT_MESSAGE,
    RealtimeSubscriptionManager,
)

__all__ = [
    "CHANNEL_ERROR_MESSAGE",
    "RealtimeSubscriptionManager",
    "TIMED_OUT_MESSAGE",
]
