"""In-process row change fan-out for realtime channels."""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any

from matrisync.application.ports import (
    STATUS_CLOSED,
    STATUS_SUBSCRIBED,
    ChangeEvent,
    ChangeHandler,
    EventType,
    Filters,
    StatusCallback,
)
from matrisync.application.ports.gateway import matches_filters

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Binding:
    collection: str
    event_type: EventType
    handler: ChangeHandler
    filters: Filters | None

    def accepts(self, event: ChangeEvent) -> bool:
        if event.collection != self.collection:
            return False
        if self.event_type is not EventType.ALL and event.event_type is not self.event_type:
            return False
        return matches_filters(event.record, self.filters)


class ChangeFeed:
    """Registry of subscribed channels; every published event is offered to all."""

    def __init__(self) -> None:
        self._channels: dict[str, InProcessChannel] = {}

    @property
    def channel_names(self) -> list[str]:
        return list(self._channels)

    def attach(self, channel: "InProcessChannel") -> None:
        if channel.name in self._channels and self._channels[channel.name] is not channel:
            logger.warning("Replacing realtime channel registered as %s", channel.name)
        self._channels[channel.name] = channel

    def detach(self, channel: "InProcessChannel") -> None:
        if self._channels.get(channel.name) is channel:
            self._channels.pop(channel.name, None)

    def publish(self, event: ChangeEvent) -> None:
        for channel in list(self._channels.values()):
            channel.dispatch(event)


class InProcessChannel:
    """Realtime channel fed by a :class:`ChangeFeed` in the same process."""

    def __init__(self, name: str, feed: ChangeFeed) -> None:
        self.name = name
        self._feed = feed
        self._bindings: list[_Binding] = []
        self._status_callback: StatusCallback | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self.subscribed = False

    def on(
        self,
        collection: str,
        event_type: EventType,
        handler: ChangeHandler,
        filters: Filters | None = None,
    ) -> "InProcessChannel":
        self._bindings.append(_Binding(collection, EventType(event_type), handler, filters))
        return self

    async def subscribe(self, status_callback: StatusCallback | None = None) -> None:
        self._status_callback = status_callback
        self._feed.attach(self)
        self.subscribed = True
        self.report(STATUS_SUBSCRIBED)

    async def unsubscribe(self) -> None:
        self._feed.detach(self)
        if self.subscribed:
            self.subscribed = False
            self.report(STATUS_CLOSED)

    def report(self, status: str) -> None:
        if self._status_callback is not None:
            self._status_callback(status)

    def dispatch(self, event: ChangeEvent) -> None:
        for binding in self._bindings:
            if not binding.accepts(event):
                continue
            try:
                result = binding.handler(event)
            except Exception:
                logger.exception("Realtime handler failed on channel %s", self.name)
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Realtime handler failed on channel %s",
                self.name,
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def drain(self) -> None:
        """Wait for handler tasks spawned so far."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


__all__ = ["ChangeFeed", "InProcessChannel"]
