"""Lifecycle of the member's realtime channel and routing of its events.

One channel per session carries every change the sync layer cares about:
messages to and from the member, matches naming the member as second party,
likes received and views of the member's profile. Events are enriched with
the actor's profile and handed to the notification feed or the conversation
store.

The connection status only moves on statuses reported by the channel. There
is no heartbeat and no automatic reconnect; :meth:`reconnect` is manual.
"""

from __future__ import annotations

import logging
from uuid import uuid4

from matrisync.application.observers import ChangeNotifier
from matrisync.application.ports import (
    STATUS_CHANNEL_ERROR,
    STATUS_CLOSED,
    STATUS_SUBSCRIBED,
    STATUS_TIMED_OUT,
    BackendGateway,
    ChangeEvent,
    EventType,
    RealtimeChannel,
)
from matrisync.application.use_cases.messages import ConversationStore
from matrisync.application.use_cases.notifications import NotificationFeed
from matrisync.application.use_cases.notifications.builders import (
    INTERACTION_LIKE,
    build_like,
    build_match,
    build_message,
    build_view,
)
from matrisync.application.use_cases.notifications.feed import (
    INTERACTIONS_COLLECTION,
    MATCHES_COLLECTION,
    MESSAGES_COLLECTION,
    VIEWS_COLLECTION,
)
from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.domain.entities import AuthUser, ConnectionStatus, ProfileSummary
from matrisync.domain.errors import GatewayError

logger = logging.getLogger(__name__)

CHANNEL_ERROR_MESSAGE = "Real-time updates unavailable due to connection issues."
TIMED_OUT_MESSAGE = "Real-time connection timed out."

TOPIC = "connection"


class RealtimeSubscriptionManager:
    """Own the realtime channel of one signed-in member."""

    def __init__(
        self,
        gateway: BackendGateway,
        user: AuthUser,
        feed: NotificationFeed,
        profiles: ProfileFetcher,
        conversations: ConversationStore | None = None,
        *,
        enabled: bool = True,
    ) -> None:
        self._gateway = gateway
        self._user = user
        self._feed = feed
        self._profiles = profiles
        self._conversations = conversations
        self.enabled = enabled
        self.status = ConnectionStatus.DISCONNECTED
        self.connection_error: str | None = None
        self.channel: RealtimeChannel | None = None
        self.changes = ChangeNotifier()

    @property
    def user_id(self) -> str:
        return self._user.id

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    async def start(self) -> None:
        """Open the channel unless realtime is disabled or already running."""

        if not self.enabled or self.channel is not None:
            return

        name = f"notifications:{self.user_id}:{uuid4().hex[:8]}"
        channel = self._gateway.channel(name)
        self._register_handlers(channel)
        self.channel = channel
        self._set_status(ConnectionStatus.CONNECTING)
        logger.debug("Subscribing realtime channel %s", name)

        try:
            await channel.subscribe(self._bind_status(channel))
        except GatewayError as exc:
            logger.warning(
                "Realtime subscription %s failed (%s): %s",
                name,
                exc.kind.value,
                exc.message,
            )
            self.channel = None
            await self._discard(channel)
            self._set_status(ConnectionStatus.ERROR, CHANNEL_ERROR_MESSAGE)

    async def stop(self) -> None:
        """Tear the channel down and report ``disconnected``."""

        channel, self.channel = self.channel, None
        if channel is not None:
            await self._discard(channel)
        self._set_status(ConnectionStatus.DISCONNECTED)

    async def _discard(self, channel: RealtimeChannel) -> None:
        try:
            await self._gateway.remove_channel(channel)
        except GatewayError as exc:
            logger.warning(
                "Removing realtime channel %s failed (%s): %s",
                channel.name,
                exc.kind.value,
                exc.message,
            )

    async def reconnect(self) -> None:
        await self.stop()
        await self.start()

    async def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled
        if enabled:
            await self.start()
        else:
            await self.stop()

    def handle_status(self, status: str) -> None:
        """Translate a channel status string into the connection state."""

        logger.debug("Realtime status for %s: %s", self.user_id, status)
        if status == STATUS_SUBSCRIBED:
            self._set_status(ConnectionStatus.CONNECTED)
        elif status == STATUS_CHANNEL_ERROR:
            self._set_status(ConnectionStatus.ERROR, CHANNEL_ERROR_MESSAGE)
        elif status == STATUS_TIMED_OUT:
            self._set_status(ConnectionStatus.ERROR, TIMED_OUT_MESSAGE)
        elif status == STATUS_CLOSED:
            self._set_status(ConnectionStatus.DISCONNECTED)
        else:
            logger.debug("Ignoring unknown realtime status %r", status)

    def _bind_status(self, channel: RealtimeChannel):
        def callback(status: str) -> None:
            # Late statuses from a channel that was already replaced are stale.
            if self.channel is channel:
                self.handle_status(status)

        return callback

    def _set_status(self, status: ConnectionStatus, error: str | None = None) -> None:
        self.status = status
        self.connection_error = error if status is ConnectionStatus.ERROR else None
        self.changes.notify(TOPIC)

    def _register_handlers(self, channel: RealtimeChannel) -> None:
        user_id = self.user_id
        channel.on(
            MESSAGES_COLLECTION,
            EventType.INSERT,
            self._on_message_received,
            {"receiver_id": user_id},
        )
        channel.on(
            MESSAGES_COLLECTION,
            EventType.INSERT,
            self._on_message_sent,
            {"sender_id": user_id},
        )
        channel.on(
            MESSAGES_COLLECTION,
            EventType.UPDATE,
            self._on_message_updated,
            {"receiver_id": user_id},
        )
        channel.on(
            MESSAGES_COLLECTION,
            EventType.UPDATE,
            self._on_read_receipt,
            {"sender_id": user_id},
        )
        channel.on(
            MATCHES_COLLECTION,
            EventType.INSERT,
            self._on_match,
            {"user2_id": user_id},
        )
        channel.on(
            INTERACTIONS_COLLECTION,
            EventType.INSERT,
            self._on_interaction,
            {"receiver_id": user_id},
        )
        channel.on(
            VIEWS_COLLECTION,
            EventType.INSERT,
            self._on_profile_view,
            {"viewed_profile_id": user_id},
        )

    async def _actor(self, actor_id: str) -> dict[str, ProfileSummary]:
        profile = await self._profiles.get(actor_id)
        return {profile.id: profile} if profile is not None else {}

    async def _on_message_received(self, event: ChangeEvent) -> None:
        record = event.record
        try:
            profiles = await self._actor(str(record.get("sender_id")))
            self._feed.add_notification(build_message(record, profiles))
            if self._conversations is not None:
                await self._conversations.handle_incoming_message(record)
        except Exception:
            logger.exception("Error handling new message %s", record.get("id"))

    async def _on_message_sent(self, event: ChangeEvent) -> None:
        if self._conversations is None:
            return
        try:
            await self._conversations.handle_incoming_message(event.record)
        except Exception:
            logger.exception("Error handling sent message %s", event.record.get("id"))

    def _on_message_updated(self, event: ChangeEvent) -> None:
        if event.record.get("read"):
            self._feed.apply_message_read(str(event.record.get("id")))

    def _on_read_receipt(self, event: ChangeEvent) -> None:
        if self._conversations is not None:
            self._conversations.handle_message_updated(event.record)

    async def _on_match(self, event: ChangeEvent) -> None:
        record = event.record
        try:
            profiles = await self._actor(str(record.get("user1_id")))
            self._feed.add_notification(
                build_match(record, profiles, user_id=self.user_id, read=False)
            )
        except Exception:
            logger.exception("Error handling new match %s", record.get("id"))

    async def _on_interaction(self, event: ChangeEvent) -> None:
        record = event.record
        if record.get("interaction_type") != INTERACTION_LIKE:
            return
        try:
            profiles = await self._actor(str(record.get("sender_id")))
            self._feed.add_notification(build_like(record, profiles, read=False))
        except Exception:
            logger.exception("Error handling new interaction %s", record.get("id"))

    async def _on_profile_view(self, event: ChangeEvent) -> None:
        record = event.record
        try:
            profiles = await self._actor(str(record.get("viewer_id")))
            self._feed.add_notification(build_view(record, profiles))
        except Exception:
            logger.exception("Error handling new profile view %s", record.get("id"))


__all__ = [
    "CHANNEL_ERROR_MESSAGE",
    "RealtimeSubscriptionManager",
    "TIMED_OUT_MESSAGE",
]
