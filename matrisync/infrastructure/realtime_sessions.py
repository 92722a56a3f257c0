"""Process-wide registry of the realtime sessions of connected members."""

from __future__ import annotations

import asyncio
import logging

from matrisync.application.auth_state import AuthState
from matrisync.application.ports import BackendGateway, Clock, Scheduler
from matrisync.application.session import RealtimeSession, SessionController, SessionOptions
from matrisync.config import Settings
from matrisync.domain.entities import AuthUser
from matrisync.infrastructure.notifications import SessionPublisher
from matrisync.infrastructure.scheduling import AsyncioScheduler, monotonic_clock

logger = logging.getLogger(__name__)


def options_from_settings(settings: Settings) -> SessionOptions:
    return SessionOptions(
        realtime_enabled=settings.realtime_enabled,
        batch_window=settings.profile_batch_window_ms / 1000,
        conversation_ttl=settings.conversation_cache_ttl_seconds,
        feed_limit=settings.notification_feed_limit,
        category_limit=settings.notification_category_limit,
        message_fetch_limit=settings.message_fetch_limit,
        cache_capacity=settings.cache_capacity,
    )


class SessionRegistry:
    """One :class:`SessionController` per member, created on first use."""

    def __init__(
        self,
        gateway: BackendGateway,
        *,
        options: SessionOptions | None = None,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
        publisher: SessionPublisher | None = None,
    ) -> None:
        self.gateway = gateway
        self._options = options or SessionOptions()
        self._scheduler = scheduler or AsyncioScheduler()
        self._clock = clock or monotonic_clock
        self._publisher = publisher
        self._controllers: dict[str, SessionController] = {}
        self._lock = asyncio.Lock()

    def get(self, user_id: str) -> RealtimeSession | None:
        controller = self._controllers.get(user_id)
        return controller.session if controller is not None else None

    async def open(self, user: AuthUser) -> RealtimeSession:
        """Return the member's session, signing them in on first use."""

        async with self._lock:
            controller = self._controllers.get(user.id)
            if controller is None:
                controller = SessionController(
                    AuthState(),
                    self._build,
                    on_open=self._publisher.attach if self._publisher else None,
                )
                self._controllers[user.id] = controller
            if controller.session is None:
                await controller.auth.sign_in(user)
            session = controller.session
        if session is None:  # pragma: no cover - sign_in always builds one
            raise RuntimeError(f"No realtime session for {user.id}")
        return session

    async def close(self, user_id: str) -> None:
        """Sign the member out and tear their session down."""

        async with self._lock:
            controller = self._controllers.pop(user_id, None)
        if controller is not None:
            await controller.auth.sign_out()

    async def close_all(self) -> None:
        for user_id in list(self._controllers):
            await self.close(user_id)
        logger.info("Closed all realtime sessions")

    def _build(self, user: AuthUser) -> RealtimeSession:
        return RealtimeSession.build(
            self.gateway,
            user,
            scheduler=self._scheduler,
            clock=self._clock,
            options=self._options,
        )


__all__ = ["SessionRegistry", "options_from_settings"]
