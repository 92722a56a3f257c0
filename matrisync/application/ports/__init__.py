"""Abstract collaborators the application layer depends on."""

from .gateway import (
    STATUS_CHANNEL_ERROR,
    STATUS_CLOSED,
    STATUS_SUBSCRIBED,
    STATUS_TIMED_OUT,
    BackendGateway,
    ChangeEvent,
    ChangeHandler,
    EventType,
    Filters,
    Order,
    RealtimeChannel,
    StatusCallback,
    WriteOp,
    matches_filters,
)
from .scheduler import Clock, ScheduledCall, Scheduler

__all__ = [
    "BackendGateway",
    "ChangeEvent",
    "ChangeHandler",
    "Clock",
    "EventType",
    "Filters",
    "Order",
    "RealtimeChannel",
    "STATUS_CHANNEL_ERROR",
    "STATUS_CLOSED",
    "STATUS_SUBSCRIBED",
    "STATUS_TIMED_OUT",
    "ScheduledCall",
    "Scheduler",
    "StatusCallback",
    "WriteOp",
    "matches_filters",
]
