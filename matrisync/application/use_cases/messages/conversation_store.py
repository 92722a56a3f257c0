"""Client side conversation state with cached histories and optimistic sends.

A conversation is identified by the id of the other member. The store keeps:

* the conversation list (latest preview and unread count per counterpart),
* the open conversation's live message list and compose text,
* an LRU cache of message histories, served without a round trip while fresh.

Outgoing messages are shown immediately under a ``temp-`` id and reconciled
with the server record once the insert returns, whichever of the insert
response and the realtime confirmation arrives first.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from matrisync.application.observers import ChangeNotifier
from matrisync.application.ports import BackendGateway, Clock, Order, WriteOp
from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.domain.entities import (
    AuthUser,
    ConversationCacheEntry,
    ConversationSummary,
    Message,
    ProfileSummary,
    new_temporary_id,
)
from matrisync.domain.errors import GatewayError, ServerError
from matrisync.utils import LRUCache, now_utc

logger = logging.getLogger(__name__)

MESSAGES_COLLECTION = "messages"
SEND_FAILED_ALERT = "Failed to send message. Please try again."
SEND_CONNECTION_ALERT = "Message not sent due to connection issues. Please try again."
CONVERSATION_LIST_LIMIT = 200

TOPIC = "conversations"


class ConversationStore:
    """Per-member conversation list, live view and message cache."""

    def __init__(
        self,
        gateway: BackendGateway,
        user: AuthUser,
        profiles: ProfileFetcher,
        clock: Clock,
        *,
        ttl: float = 30.0,
        fetch_limit: int = 50,
        capacity: int = 500,
    ) -> None:
        self._gateway = gateway
        self._user = user
        self._profiles = profiles
        self._clock = clock
        self.ttl = ttl
        self.fetch_limit = fetch_limit
        self.cache: LRUCache[str, ConversationCacheEntry] = LRUCache(capacity)
        self.conversations: list[ConversationSummary] = []
        self.selected_conversation: str | None = None
        self.messages: list[Message] = []
        self.compose_text = ""
        self.sending = False
        self.loading = False
        self.alert: str | None = None
        self.changes = ChangeNotifier()

    @property
    def user_id(self) -> str:
        return self._user.id

    # -- conversation list -------------------------------------------------

    async def fetch_conversations(self) -> list[ConversationSummary]:
        """Rebuild the conversation list from the member's recent messages."""

        self.loading = True
        try:
            sent = await self._gateway.read(
                MESSAGES_COLLECTION,
                {"sender_id": self.user_id},
                order=Order("created_at", ascending=False),
                limit=CONVERSATION_LIST_LIMIT,
            )
            received = await self._gateway.read(
                MESSAGES_COLLECTION,
                {"receiver_id": self.user_id},
                order=Order("created_at", ascending=False),
                limit=CONVERSATION_LIST_LIMIT,
            )
        except GatewayError as exc:
            logger.warning(
                "Could not load conversations for %s (%s): %s",
                self.user_id,
                exc.kind.value,
                exc.message,
            )
            return list(self.conversations)
        finally:
            self.loading = False

        latest: dict[str, Message] = {}
        unread: dict[str, int] = {}
        for message in (Message.from_record(record) for record in [*sent, *received]):
            counterpart = message.counterpart_of(self.user_id)
            current = latest.get(counterpart)
            if current is None or message.created_at > current.created_at:
                latest[counterpart] = message
            if message.receiver_id == self.user_id and not message.read:
                unread[counterpart] = unread.get(counterpart, 0) + 1

        profiles = await self._profiles.get_many(latest)
        summaries = []
        for counterpart, message in latest.items():
            profile = profiles.get(counterpart) or ProfileSummary.anonymous(counterpart)
            summaries.append(
                ConversationSummary(
                    id=counterpart,
                    name=profile.name,
                    avatar=profile.image,
                    last_message=message.content,
                    last_message_time=message.created_at,
                    unread_count=unread.get(counterpart, 0),
                )
            )
        summaries.sort(key=lambda summary: summary.last_message_time, reverse=True)
        self.conversations = summaries
        self.changes.notify(TOPIC)
        return list(self.conversations)

    def get_conversation(self, conversation_id: str) -> ConversationSummary | None:
        for summary in self.conversations:
            if summary.id == conversation_id:
                return summary
        return None

    # -- live view -----------------------------------------------------------

    async def select_conversation(self, conversation_id: str) -> list[Message]:
        """Open ``conversation_id`` in the live view and load its history."""

        if self.selected_conversation != conversation_id:
            self.selected_conversation = conversation_id
            self.messages = []
            self.alert = None
        return await self.fetch_messages(conversation_id)

    def close_conversation(self) -> None:
        self.selected_conversation = None
        self.messages = []
        self.compose_text = ""
        self.changes.notify(TOPIC)

    def set_compose_text(self, text: str) -> None:
        self.compose_text = text

    async def fetch_messages(self, conversation_id: str) -> list[Message]:
        """Return the history of ``conversation_id``, from cache while fresh."""

        entry = self.cache.get(conversation_id)
        if entry is not None and entry.is_fresh(self._clock(), self.ttl):
            logger.debug("Serving conversation %s from cache", conversation_id)
            messages = list(entry.messages)
        else:
            try:
                messages = await self._load_history(conversation_id)
            except GatewayError as exc:
                logger.warning(
                    "Could not load conversation %s (%s): %s",
                    conversation_id,
                    exc.kind.value,
                    exc.message,
                )
                return list(self.messages) if self.selected_conversation == conversation_id else []
            previous = entry.messages if entry is not None else []
            self.cache.set(
                conversation_id,
                ConversationCacheEntry(
                    conversation_id=conversation_id,
                    messages=_keep_pending(messages, previous),
                    last_fetched_at=self._clock(),
                ),
            )

        if self.selected_conversation == conversation_id:
            self.messages = _keep_pending(messages, self.messages)
            self.changes.notify(TOPIC)
        await self.mark_conversation_as_read(conversation_id)
        return messages

    async def _load_history(self, conversation_id: str) -> list[Message]:
        newest_first = Order("created_at", ascending=False)
        sent = await self._gateway.read(
            MESSAGES_COLLECTION,
            {"sender_id": self.user_id, "receiver_id": conversation_id},
            order=newest_first,
            limit=self.fetch_limit,
        )
        received = await self._gateway.read(
            MESSAGES_COLLECTION,
            {"sender_id": conversation_id, "receiver_id": self.user_id},
            order=newest_first,
            limit=self.fetch_limit,
        )
        messages = sorted(
            (Message.from_record(record) for record in [*sent, *received]),
            key=lambda message: message.created_at,
        )
        return messages[-self.fetch_limit :]

    async def mark_conversation_as_read(self, conversation_id: str) -> None:
        """Mark every message received from ``conversation_id`` as read."""

        try:
            await self._gateway.write(
                MESSAGES_COLLECTION,
                WriteOp.UPDATE,
                {"read": True},
                {
                    "sender_id": conversation_id,
                    "receiver_id": self.user_id,
                    "read": False,
                },
            )
        except GatewayError as exc:
            logger.warning(
                "Could not mark conversation %s as read (%s): %s",
                conversation_id,
                exc.kind.value,
                exc.message,
            )
            return

        summary = self.get_conversation(conversation_id)
        if summary is not None and summary.unread_count:
            summary.unread_count = 0
            self.changes.notify(TOPIC)

    # -- sending -------------------------------------------------------------

    async def send_message(
        self, conversation_id: str | None = None, content: str | None = None
    ) -> Message | None:
        """Send ``content`` (default: the compose text) to ``conversation_id``.

        Returns the stored message, or ``None`` when nothing was sent.
        """

        conversation_id = conversation_id or self.selected_conversation
        raw_content = self.compose_text if content is None else content
        text = (raw_content or "").strip()
        if not text or not conversation_id or self.sending:
            return None

        self.sending = True
        self.alert = None
        self.compose_text = ""
        optimistic = Message(
            id=new_temporary_id(),
            sender_id=self.user_id,
            receiver_id=conversation_id,
            content=text,
            read=False,
            created_at=now_utc(),
        )
        self._append(conversation_id, optimistic)
        self.changes.notify(TOPIC)

        try:
            record = await self._gateway.write(
                MESSAGES_COLLECTION,
                WriteOp.INSERT,
                {
                    "sender_id": self.user_id,
                    "receiver_id": conversation_id,
                    "content": text,
                },
            )
            stored = Message.from_record(_single(record))
        except GatewayError as exc:
            logger.warning(
                "Sending message to %s failed (%s): %s",
                conversation_id,
                exc.kind.value,
                exc.message,
            )
            self._remove(conversation_id, optimistic.id)
            self.compose_text = text
            self.alert = SEND_CONNECTION_ALERT if exc.is_network else SEND_FAILED_ALERT
            self.changes.notify(TOPIC)
            return None
        finally:
            self.sending = False

        self._reconcile(conversation_id, optimistic.id, stored)
        await self._touch_conversation(conversation_id, stored, increment_unread=False)
        self.changes.notify(TOPIC)
        return stored

    # -- realtime reconciliation --------------------------------------------

    async def handle_incoming_message(self, record: Mapping[str, Any]) -> None:
        """Apply a message inserted on the server (received or sent by me)."""

        message = Message.from_record(record)
        conversation_id = message.counterpart_of(self.user_id)
        incoming = message.receiver_id == self.user_id
        is_open = self.selected_conversation == conversation_id

        if incoming and is_open and not message.read:
            try:
                await self._gateway.write(
                    MESSAGES_COLLECTION,
                    WriteOp.UPDATE,
                    {"read": True},
                    {"id": message.id},
                )
            except GatewayError as exc:
                logger.warning(
                    "Could not mark message %s as read (%s): %s",
                    message.id,
                    exc.kind.value,
                    exc.message,
                )
            else:
                message = message.as_read()

        self._append(conversation_id, message)
        await self._touch_conversation(
            conversation_id, message, increment_unread=incoming and not is_open
        )
        self.changes.notify(TOPIC)

    def handle_message_updated(self, record: Mapping[str, Any]) -> None:
        """Swap in an updated record, typically a read receipt."""

        message = Message.from_record(record)
        conversation_id = message.counterpart_of(self.user_id)
        changed = False
        if self.selected_conversation == conversation_id:
            changed = _replace_by_id(self.messages, message.id, message)
        entry = self.cache.get(conversation_id)
        if entry is not None:
            changed = _replace_by_id(entry.messages, message.id, message) or changed
        if changed:
            self.changes.notify(TOPIC)

    # -- helpers ---------------------------------------------------------------

    def _append(self, conversation_id: str, message: Message) -> None:
        if self.selected_conversation == conversation_id:
            if not any(existing.id == message.id for existing in self.messages):
                self.messages.append(message)
        entry = self.cache.get(conversation_id)
        if entry is not None and not any(
            existing.id == message.id for existing in entry.messages
        ):
            entry.messages.append(message)

    def _remove(self, conversation_id: str, message_id: str) -> None:
        self.messages = [message for message in self.messages if message.id != message_id]
        entry = self.cache.get(conversation_id)
        if entry is not None:
            entry.messages = [
                message for message in entry.messages if message.id != message_id
            ]

    def _reconcile(self, conversation_id: str, temporary_id: str, stored: Message) -> None:
        if self.selected_conversation == conversation_id:
            self.messages = _swap_temporary(self.messages, temporary_id, stored)
        entry = self.cache.get(conversation_id)
        if entry is not None:
            entry.messages = _swap_temporary(entry.messages, temporary_id, stored)

    async def _touch_conversation(
        self, conversation_id: str, message: Message, *, increment_unread: bool
    ) -> None:
        summary = self.get_conversation(conversation_id)
        if summary is None:
            profile = await self._profiles.get(conversation_id)
            profile = profile or ProfileSummary.anonymous(conversation_id)
            summary = ConversationSummary(
                id=conversation_id, name=profile.name, avatar=profile.image
            )
        else:
            self.conversations.remove(summary)
        summary.last_message = message.content
        summary.last_message_time = message.created_at
        if increment_unread:
            summary.unread_count += 1
        self.conversations.insert(0, summary)


def _single(record: Any) -> Mapping[str, Any]:
    if isinstance(record, list):
        if not record:
            raise ServerError("Insert returned no record")
        return record[0]
    return record


def _replace_by_id(messages: list[Message], message_id: str, replacement: Message) -> bool:
    for index, existing in enumerate(messages):
        if existing.id == message_id:
            messages[index] = replacement
            return True
    return False


def _swap_temporary(messages: list[Message], temporary_id: str, stored: Message) -> list[Message]:
    # The realtime confirmation may have delivered ``stored`` already.
    if any(message.id == stored.id for message in messages):
        return [message for message in messages if message.id != temporary_id]
    if not any(message.id == temporary_id for message in messages):
        return [*messages, stored]
    return [stored if message.id == temporary_id else message for message in messages]


def _keep_pending(fetched: list[Message], previous: list[Message]) -> list[Message]:
    """Return ``fetched`` plus the unsent ``temp-`` messages of ``previous``."""

    known = {message.id for message in fetched}
    pending = [m for m in previous if m.is_temporary and m.id not in known]
    return [*fetched, *pending]


__all__ = [
    "ConversationStore",
    "MESSAGES_COLLECTION",
    "SEND_CONNECTION_ALERT",
    "SEND_FAILED_ALERT",
]
