"""Minimal change notification shared by the stateful use cases."""

from __future__ import annotations

import logging
from typing import Callable

logger = logging.getLogger(__name__)

ChangeListener = Callable[[str], None]


class ChangeNotifier:
    """Keep a list of listeners and tell them which topic changed."""

    def __init__(self) -> None:
        self._listeners: list[ChangeListener] = []

    def add_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def notify(self, topic: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(topic)
            except Exception:
                logger.exception("Change listener failed for topic %s", topic)


__all__ = ["ChangeListener", "ChangeNotifier"]
