"""Debounced, cached lookup of profile summaries.

Rendering a burst of notifications usually asks for the same handful of
profiles many times. :class:`ProfileFetcher` answers from an LRU cache when it
can and otherwise parks the caller until the batching window closes, then
resolves every parked caller from a single ``profiles`` read.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from matrisync.application.ports import BackendGateway, ScheduledCall, Scheduler
from matrisync.domain.entities import ProfileSummary
from matrisync.domain.errors import GatewayError
from matrisync.utils import LRUCache

logger = logging.getLogger(__name__)

PROFILES_COLLECTION = "profiles"
DEFAULT_BATCH_WINDOW = 0.1


class ProfileFetcher:
    """Resolve ``ProfileSummary`` objects by id, coalescing nearby requests."""

    def __init__(
        self,
        gateway: BackendGateway,
        scheduler: Scheduler,
        *,
        window: float = DEFAULT_BATCH_WINDOW,
        capacity: int = 500,
    ) -> None:
        self._gateway = gateway
        self._scheduler = scheduler
        self._window = window
        self.cache: LRUCache[str, ProfileSummary] = LRUCache(capacity)
        self._pending_ids: set[str] = set()
        self._waiters: list[tuple[str, asyncio.Future[ProfileSummary | None]]] = []
        self._flush_call: ScheduledCall | None = None
        self._flush_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending_ids(self) -> frozenset[str]:
        return frozenset(self._pending_ids)

    async def get(self, user_id: str) -> ProfileSummary | None:
        """Return the summary for ``user_id`` or ``None`` if it cannot be loaded."""

        user_id = str(user_id)
        cached = self.cache.get(user_id)
        if cached is not None:
            return cached

        future: asyncio.Future[ProfileSummary | None] = (
            asyncio.get_running_loop().create_future()
        )
        self._pending_ids.add(user_id)
        self._waiters.append((user_id, future))
        self._schedule_flush()
        return await future

    async def get_many(self, user_ids: Iterable[str]) -> dict[str, ProfileSummary]:
        """Resolve several ids at once; unresolvable ids are left out."""

        unique = list(dict.fromkeys(str(user_id) for user_id in user_ids if user_id))
        if not unique:
            return {}
        summaries = await asyncio.gather(*(self.get(user_id) for user_id in unique))
        return {
            user_id: summary
            for user_id, summary in zip(unique, summaries)
            if summary is not None
        }

    def clear(self) -> None:
        """Forget every cached summary."""

        self.cache.clear()

    def _schedule_flush(self) -> None:
        # Every new request inside the window pushes the flush back.
        if self._flush_call is not None:
            self._flush_call.cancel()
        self._flush_call = self._scheduler.call_later(self._window, self._on_window_closed)

    def _on_window_closed(self) -> None:
        self._flush_call = None
        task = asyncio.get_running_loop().create_task(self.flush())
        self._flush_tasks.add(task)
        task.add_done_callback(self._on_flush_done)

    def _on_flush_done(self, task: asyncio.Task[None]) -> None:
        self._flush_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Batch profile lookup crashed",
                exc_info=(type(exc), exc, exc.__traceback__),
            )

    async def flush(self) -> None:
        """Load every pending id in one read and wake the parked callers."""

        waiters, self._waiters = self._waiters, []
        pending, self._pending_ids = self._pending_ids, set()
        if not waiters:
            return

        missing = sorted(user_id for user_id in pending if user_id not in self.cache)
        try:
            if missing:
                try:
                    records = await self._gateway.read(PROFILES_COLLECTION, {"id": missing})
                except GatewayError as exc:
                    logger.warning(
                        "Batch profile lookup for %d ids failed (%s): %s",
                        len(missing),
                        exc.kind.value,
                        exc.message,
                    )
                    return
                for record in records:
                    summary = ProfileSummary.from_record(record)
                    self.cache.set(summary.id, summary)
                logger.debug("Loaded %d of %d requested profiles", len(records), len(missing))

            _resolve_all(waiters, self.cache.get)
        finally:
            # Whatever went wrong, no caller may stay parked.
            _resolve_all(waiters, lambda _user_id: None)


def _resolve_all(waiters, resolver) -> None:
    for user_id, future in waiters:
        if not future.done():
            future.set_result(resolver(user_id))


__all__ = ["DEFAULT_BATCH_WINDOW", "PROFILES_COLLECTION", "ProfileFetcher"]
