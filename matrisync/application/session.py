"""Session-scoped ownership of every piece of realtime sync state.

A :class:`RealtimeSession` is built when a member signs in and discarded when
they sign out, so caches, the feed and the channel never outlive the member
they belong to and independent sessions never share state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from matrisync.application.auth_state import AuthState
from matrisync.application.observers import ChangeListener
from matrisync.application.ports import BackendGateway, Clock, Scheduler
from matrisync.application.use_cases.messages import ConversationStore
from matrisync.application.use_cases.notifications import NotificationFeed
from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.application.use_cases.realtime import RealtimeSubscriptionManager
from matrisync.domain.entities import AuthUser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionOptions:
    """Tunables shared by every session built by a controller."""

    realtime_enabled: bool = True
    batch_window: float = 0.1
    conversation_ttl: float = 30.0
    feed_limit: int = 50
    category_limit: int = 5
    message_fetch_limit: int = 50
    cache_capacity: int = 500


@dataclass
class RealtimeSession:
    """Everything the sync layer holds for one signed-in member."""

    user: AuthUser
    profiles: ProfileFetcher
    feed: NotificationFeed
    conversations: ConversationStore
    subscriptions: RealtimeSubscriptionManager
    _unsubscribers: list[Callable[[], None]] = field(default_factory=list, repr=False)

    @classmethod
    def build(
        cls,
        gateway: BackendGateway,
        user: AuthUser,
        *,
        scheduler: Scheduler,
        clock: Clock,
        options: SessionOptions | None = None,
    ) -> "RealtimeSession":
        options = options or SessionOptions()
        profiles = ProfileFetcher(
            gateway,
            scheduler,
            window=options.batch_window,
            capacity=options.cache_capacity,
        )
        feed = NotificationFeed(
            gateway,
            user,
            profiles,
            limit=options.feed_limit,
            category_limit=options.category_limit,
        )
        conversations = ConversationStore(
            gateway,
            user,
            profiles,
            clock,
            ttl=options.conversation_ttl,
            fetch_limit=options.message_fetch_limit,
            capacity=options.cache_capacity,
        )
        subscriptions = RealtimeSubscriptionManager(
            gateway,
            user,
            feed,
            profiles,
            conversations,
            enabled=options.realtime_enabled,
        )
        return cls(
            user=user,
            profiles=profiles,
            feed=feed,
            conversations=conversations,
            subscriptions=subscriptions,
        )

    def add_listener(self, listener: ChangeListener) -> None:
        """Receive the topic of every state change of this session."""

        for notifier in (
            self.feed.changes,
            self.conversations.changes,
            self.subscriptions.changes,
        ):
            self._unsubscribers.append(notifier.add_listener(listener))

    async def open(self) -> None:
        await self.feed.fetch_notifications()
        await self.subscriptions.start()

    async def close(self) -> None:
        await self.subscriptions.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()


SessionFactory = Callable[[AuthUser], RealtimeSession]
SessionHook = Callable[[RealtimeSession], None]


class SessionController:
    """Open a session on sign-in and close it on sign-out."""

    def __init__(
        self,
        auth: AuthState,
        factory: SessionFactory,
        *,
        on_open: SessionHook | None = None,
    ) -> None:
        self.auth = auth
        self._factory = factory
        self._on_open = on_open
        self.session: RealtimeSession | None = None
        auth.on_change(self._handle_auth_change)

    async def _handle_auth_change(self, user: AuthUser | None) -> None:
        if self.session is not None:
            logger.info("Closing realtime session for %s", self.session.user.id)
            previous, self.session = self.session, None
            await previous.close()
        if user is None:
            return

        session = self._factory(user)
        if self._on_open is not None:
            self._on_open(session)
        self.session = session
        logger.info("Opening realtime session for %s", user.id)
        await session.open()


__all__ = [
    "RealtimeSession",
    "SessionController",
    "SessionFactory",
    "SessionOptions",
]
