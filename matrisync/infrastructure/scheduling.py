"""asyncio backed implementation of the scheduler and clock ports."""

from __future__ import annotations

import asyncio
import time
from typing import Callable

from matrisync.application.ports import ScheduledCall


class AsyncioScheduler:
    """Schedule callbacks on the running event loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        loop = asyncio.get_running_loop()
        return loop.call_later(max(delay, 0.0), callback)


def monotonic_clock() -> float:
    return time.monotonic()


__all__ = ["AsyncioScheduler", "monotonic_clock"]
