"""Serialize session state and push it to the member's websockets."""

from __future__ import annotations

import asyncio
from typing import Any

from matrisync.application.session import RealtimeSession
from matrisync.domain.entities import ConversationSummary, Message, Notification
from matrisync.utils import isoformat_or_none

from .manager import NotificationConnectionManager, notification_manager


class SessionPublisher:
    """Translate session change topics into websocket payloads."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager
        self._tasks: set[asyncio.Task[None]] = set()

    def attach(self, session: RealtimeSession) -> None:
        """Start forwarding every change of ``session`` to its member."""

        session.add_listener(lambda topic: self.dispatch(session, topic))

    def dispatch(self, session: RealtimeSession, topic: str) -> None:
        """Schedule delivery of the current ``topic`` snapshot of ``session``."""

        message = {"type": topic, "data": snapshot(session, topic)}
        self._schedule_delivery(session.user.id, message)

    def _schedule_delivery(self, user_id: str, message: dict[str, Any]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # Session state only changes on the loop; nothing to deliver to.
            return
        task = loop.create_task(self._manager.send_to_user(user_id, message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


def snapshot(session: RealtimeSession, topic: str) -> dict[str, Any]:
    if topic == "notifications":
        return serialize_feed(session)
    if topic == "connection":
        return serialize_connection(session)
    return serialize_conversations(session)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    payload: dict[str, Any] = {
        "id": notification.id,
        "type": notification.type.value,
        "read": notification.read,
        "created_at": isoformat_or_none(notification.created_at),
        "user": {
            "id": notification.user.id,
            "name": notification.user.name,
            "image": notification.user.image,
        },
        "message": notification.message,
    }
    if notification.content is not None:
        payload["content"] = notification.content
    return payload


def serialize_feed(session: RealtimeSession) -> dict[str, Any]:
    feed = session.feed
    return {
        "notifications": [serialize_notification(n) for n in feed.notifications],
        "unread_count": feed.unread_count,
        "is_loading": feed.is_loading,
        "connection_error": feed.connection_error,
    }


def serialize_connection(session: RealtimeSession) -> dict[str, Any]:
    manager = session.subscriptions
    return {
        "status": manager.status.value,
        "enabled": manager.enabled,
        "connection_error": manager.connection_error,
    }


def serialize_message(message: Message) -> dict[str, Any]:
    return {
        "id": message.id,
        "sender_id": message.sender_id,
        "receiver_id": message.receiver_id,
        "content": message.content,
        "read": message.read,
        "created_at": isoformat_or_none(message.created_at),
        "pending": message.is_temporary,
    }


def _serialize_summary(summary: ConversationSummary) -> dict[str, Any]:
    return {
        "id": summary.id,
        "name": summary.name,
        "avatar": summary.avatar,
        "last_message": summary.last_message,
        "last_message_time": isoformat_or_none(summary.last_message_time),
        "unread_count": summary.unread_count,
    }


def serialize_conversations(session: RealtimeSession) -> dict[str, Any]:
    store = session.conversations
    return {
        "conversations": [_serialize_summary(s) for s in store.conversations],
        "selected_conversation": store.selected_conversation,
        "messages": [serialize_message(m) for m in store.messages],
        "compose_text": store.compose_text,
        "sending": store.sending,
        "alert": store.alert,
    }


session_publisher = SessionPublisher(notification_manager)


__all__ = [
    "SessionPublisher",
    "serialize_connection",
    "serialize_conversations",
    "serialize_feed",
    "serialize_message",
    "serialize_notification",
    "session_publisher",
    "snapshot",
]
