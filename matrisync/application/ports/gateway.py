"""Contract of the backend data and realtime gateway.

The gateway exposes named record collections (``profiles``, ``messages``,
``matches`` ...) through a small query/write interface plus row-level change
channels. Implementations raise :class:`matrisync.domain.errors.GatewayError`
subclasses and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping, Protocol, Union

Filters = Mapping[str, Any]
Record = dict[str, Any]

STATUS_SUBSCRIBED = "SUBSCRIBED"
STATUS_CHANNEL_ERROR = "CHANNEL_ERROR"
STATUS_TIMED_OUT = "TIMED_OUT"
STATUS_CLOSED = "CLOSED"


class WriteOp(str, Enum):
    INSERT = "insert"
    UPDATE = "update"
    UPSERT = "upsert"
    DELETE = "delete"


class EventType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ALL = "*"


@dataclass(frozen=True)
class Order:
    """Sort instruction for :meth:`BackendGateway.read`."""

    column: str
    ascending: bool = True


@dataclass(frozen=True)
class ChangeEvent:
    """Row-level change delivered through a realtime channel."""

    collection: str
    event_type: EventType
    record: Record
    old_record: Record = field(default_factory=dict)


ChangeHandler = Callable[[ChangeEvent], Union[Awaitable[None], None]]
StatusCallback = Callable[[str], None]


def matches_filters(record: Mapping[str, Any], filters: Filters | None) -> bool:
    """Return ``True`` when ``record`` satisfies every equality/``in`` filter."""

    if not filters:
        return True
    for column, expected in filters.items():
        value = record.get(column)
        if isinstance(expected, (list, tuple, set, frozenset)):
            if value not in expected:
                return False
        elif value != expected:
            return False
    return True


class RealtimeChannel(Protocol):
    """Named bundle of change subscriptions sharing one lifecycle."""

    name: str

    def on(
        self,
        collection: str,
        event_type: EventType,
        handler: ChangeHandler,
        filters: Filters | None = None,
    ) -> "RealtimeChannel":
        ...

    async def subscribe(self, status_callback: StatusCallback | None = None) -> None:
        ...

    async def unsubscribe(self) -> None:
        ...


class BackendGateway(Protocol):
    """Query, write and subscribe operations consumed by the sync layer."""

    async def read(
        self,
        collection: str,
        filters: Filters | None = None,
        *,
        order: Order | None = None,
        limit: int | None = None,
    ) -> list[Record]:
        ...

    async def write(
        self,
        collection: str,
        op: WriteOp,
        payload: Mapping[str, Any] | None = None,
        filters: Filters | None = None,
    ) -> Record | list[Record]:
        ...

    def channel(self, name: str) -> RealtimeChannel:
        ...

    async def remove_channel(self, channel: RealtimeChannel) -> None:
        ...


__all__ = [
    "BackendGateway",
    "ChangeEvent",
    "ChangeHandler",
    "EventType",
    "Filters",
    "Order",
    "RealtimeChannel",
    "Record",
    "STATUS_CHANNEL_ERROR",
    "STATUS_CLOSED",
    "STATUS_SUBSCRIBED",
    "STATUS_TIMED_OUT",
    "StatusCallback",
    "WriteOp",
    "matches_filters",
]
