"""Time related ports so batching and cache freshness can run on a fake clock."""

from __future__ import annotations

from typing import Callable, Protocol

Clock = Callable[[], float]


class ScheduledCall(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after ``delay`` seconds."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        ...


__all__ = ["Clock", "ScheduledCall", "Scheduler"]
