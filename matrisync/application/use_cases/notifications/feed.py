"""Unified notification feed for the signed-in member.

The feed merges likes, messages, profile views and matches into one list
ordered newest first and keeps an unread counter next to it. The counter is
rebuilt from the unread entries the feed keeps on every
:meth:`NotificationFeed.fetch_notifications`; between fetches it moves by
deltas coming from realtime inserts and read actions.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Iterable

from matrisync.application.observers import ChangeNotifier
from matrisync.application.ports import BackendGateway, Order, WriteOp
from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.domain.entities import AuthUser, Notification, NotificationType
from matrisync.domain.errors import GatewayError

from .builders import (
    INTERACTION_LIKE,
    build_like,
    build_match,
    build_message,
    build_view,
    match_counterpart,
)

logger = logging.getLogger(__name__)

INTERACTIONS_COLLECTION = "profile_interactions"
MESSAGES_COLLECTION = "messages"
VIEWS_COLLECTION = "profile_views"
MATCHES_COLLECTION = "matches"

FETCH_CONNECTION_ERROR = "Unable to load notifications due to connection issues."
UPDATE_CONNECTION_ERROR = "Unable to update notifications due to connection issues."

TOPIC = "notifications"
_NEWEST_FIRST = Order("created_at", ascending=False)


class NotificationFeed:
    """Stateful notification aggregator bound to one member."""

    def __init__(
        self,
        gateway: BackendGateway,
        user: AuthUser,
        profiles: ProfileFetcher,
        *,
        limit: int = 50,
        category_limit: int = 5,
    ) -> None:
        self._gateway = gateway
        self._user = user
        self._profiles = profiles
        self.limit = limit
        self.category_limit = category_limit
        self.notifications: list[Notification] = []
        self.unread_count = 0
        self.is_loading = False
        self.connection_error: str | None = None
        self.changes = ChangeNotifier()

    @property
    def user_id(self) -> str:
        return self._user.id

    def get(self, notification_id: str) -> Notification | None:
        for notification in self.notifications:
            if notification.id == notification_id:
                return notification
        return None

    async def fetch_notifications(self) -> list[Notification]:
        """Rebuild the feed from the four notification categories."""

        self.is_loading = True
        self.connection_error = None
        try:
            likes, messages, views, matches = await self._fetch_categories()

            actor_ids: list[str] = [str(like.get("sender_id")) for like in likes]
            actor_ids += [str(message.get("sender_id")) for message in messages]
            actor_ids += [str(view.get("viewer_id")) for view in views]
            actor_ids += [match_counterpart(match, self.user_id) for match in matches]
            profiles = await self._profiles.get_many(actor_ids)

            merged: list[Notification] = [
                *(build_like(record, profiles, read=True) for record in likes),
                *(build_message(record, profiles) for record in messages),
                *(build_view(record, profiles) for record in views),
                *(
                    build_match(record, profiles, user_id=self.user_id, read=True)
                    for record in matches
                ),
            ]
            self.notifications = _sorted_unique(merged)[: self.limit]
            self.unread_count = sum(
                1 for notification in self.notifications if not notification.read
            )
            logger.debug(
                "Fetched %d notifications for %s (%d unread)",
                len(self.notifications),
                self.user_id,
                self.unread_count,
            )
        finally:
            self.is_loading = False
            self.changes.notify(TOPIC)
        return list(self.notifications)

    async def _fetch_categories(self) -> tuple[list[dict[str, Any]], ...]:
        user_id = self.user_id
        branches: dict[str, Awaitable[list[dict[str, Any]]]] = {
            "likes": self._gateway.read(
                INTERACTIONS_COLLECTION,
                {"receiver_id": user_id, "interaction_type": INTERACTION_LIKE},
                order=_NEWEST_FIRST,
                limit=self.category_limit,
            ),
            "messages": self._gateway.read(
                MESSAGES_COLLECTION,
                {"receiver_id": user_id},
                order=_NEWEST_FIRST,
                limit=self.category_limit,
            ),
            "views": self._gateway.read(
                VIEWS_COLLECTION,
                {"viewed_profile_id": user_id},
                order=_NEWEST_FIRST,
                limit=self.category_limit,
            ),
            "matches": self._fetch_matches(),
        }
        outcomes = await asyncio.gather(*branches.values(), return_exceptions=True)

        results: list[list[dict[str, Any]]] = []
        for category, outcome in zip(branches, outcomes):
            if isinstance(outcome, GatewayError):
                logger.warning(
                    "Could not load %s notifications for %s (%s): %s",
                    category,
                    user_id,
                    outcome.kind.value,
                    outcome.message,
                )
                if outcome.is_network:
                    self.connection_error = FETCH_CONNECTION_ERROR
                results.append([])
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(outcome)
        return tuple(results)

    async def _fetch_matches(self) -> list[dict[str, Any]]:
        as_first, as_second = await asyncio.gather(
            self._gateway.read(
                MATCHES_COLLECTION,
                {"user1_id": self.user_id},
                order=_NEWEST_FIRST,
                limit=self.category_limit,
            ),
            self._gateway.read(
                MATCHES_COLLECTION,
                {"user2_id": self.user_id},
                order=_NEWEST_FIRST,
                limit=self.category_limit,
            ),
        )
        return [*as_first, *as_second]

    def add_notification(self, notification: Notification) -> bool:
        """Insert ``notification`` at the head unless its id is already present.

        Returns ``True`` when the notification was inserted.
        """

        if self.get(notification.id) is not None:
            return False
        self.notifications.insert(0, notification)
        del self.notifications[self.limit :]
        if not notification.read:
            self.unread_count += 1
        self.changes.notify(TOPIC)
        return True

    async def mark_as_read(self, notification_id: str) -> None:
        """Flag one notification as read locally and, for messages, on the server.

        The local flag flips even when the server update fails.
        """

        notification = self.get(notification_id)
        if notification is None or notification.read:
            return

        if notification.type is NotificationType.MESSAGE:
            try:
                await self._gateway.write(
                    MESSAGES_COLLECTION,
                    WriteOp.UPDATE,
                    {"read": True},
                    {"id": notification_id},
                )
            except GatewayError as exc:
                self._record_update_failure(exc, "mark notification %s as read" % notification_id)

        self._set_read([notification_id])
        self.unread_count = max(0, self.unread_count - 1)
        self.changes.notify(TOPIC)

    async def mark_all_as_read(self) -> None:
        unread_message_ids = [
            notification.id
            for notification in self.notifications
            if notification.type is NotificationType.MESSAGE and not notification.read
        ]
        if unread_message_ids:
            try:
                await self._gateway.write(
                    MESSAGES_COLLECTION,
                    WriteOp.UPDATE,
                    {"read": True},
                    {"id": unread_message_ids},
                )
            except GatewayError as exc:
                self._record_update_failure(exc, "mark all notifications as read")

        self.notifications = [notification.as_read() for notification in self.notifications]
        self.unread_count = 0
        self.changes.notify(TOPIC)

    def apply_message_read(self, message_id: str) -> None:
        """Reflect a message that was read elsewhere (another tab, the chat view)."""

        notification = self.get(message_id)
        if notification is None or notification.read:
            return
        self._set_read([message_id])
        self.unread_count = max(0, self.unread_count - 1)
        self.changes.notify(TOPIC)

    def clear_notifications(self) -> None:
        """Empty the feed and drop cached profiles so the next fetch is fresh."""

        self.notifications = []
        self.unread_count = 0
        self.connection_error = None
        self._profiles.clear()
        self.changes.notify(TOPIC)

    def _set_read(self, notification_ids: Iterable[str]) -> None:
        targets = set(notification_ids)
        self.notifications = [
            notification.as_read() if notification.id in targets else notification
            for notification in self.notifications
        ]

    def _record_update_failure(self, exc: GatewayError, action: str) -> None:
        logger.warning("Could not %s (%s): %s", action, exc.kind.value, exc.message)
        if exc.is_network:
            self.connection_error = UPDATE_CONNECTION_ERROR


def _sorted_unique(notifications: Iterable[Notification]) -> list[Notification]:
    unique: dict[str, Notification] = {}
    for notification in notifications:
        unique.setdefault(notification.id, notification)
    return sorted(unique.values(), key=lambda item: item.created_at, reverse=True)


__all__ = [
    "FETCH_CONNECTION_ERROR",
    "INTERACTIONS_COLLECTION",
    "MATCHES_COLLECTION",
    "MESSAGES_COLLECTION",
    "NotificationFeed",
    "UPDATE_CONNECTION_ERROR",
    "VIEWS_COLLECTION",
]
