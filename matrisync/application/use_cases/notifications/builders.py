"""Map raw gateway records to feed notifications.

The same phrase rules are used for the initial batch fetch and for records
arriving through the realtime channel, so a notification looks the same no
matter which path produced it.
"""

from __future__ import annotations

from typing import Any, Mapping

from matrisync.domain.entities import Notification, NotificationType, ProfileSummary
from matrisync.utils import parse_timestamp

LIKE_PHRASE = "liked your profile"
MESSAGE_PHRASE = "sent you a message"
VIEW_PHRASE = "viewed your profile"
MATCH_REQUEST_PHRASE = "sent you a match request"
MATCHED_PHRASE = "matched with you"

INTERACTION_LIKE = "like"


def match_counterpart(record: Mapping[str, Any], user_id: str) -> str:
    """Return the member on the other side of a ``matches`` row."""

    if str(record.get("user1_id")) == user_id:
        return str(record.get("user2_id"))
    return str(record.get("user1_id"))


def match_phrase(record: Mapping[str, Any], user_id: str) -> str:
    # The second party is the one who received the request.
    if str(record.get("user2_id")) == user_id:
        return MATCH_REQUEST_PHRASE
    return MATCHED_PHRASE


def _actor(profiles: Mapping[str, ProfileSummary], actor_id: Any) -> ProfileSummary:
    actor_id = str(actor_id)
    return profiles.get(actor_id) or ProfileSummary.anonymous(actor_id)


def build_like(
    record: Mapping[str, Any],
    profiles: Mapping[str, ProfileSummary],
    *,
    read: bool,
) -> Notification:
    return Notification(
        id=str(record["id"]),
        type=NotificationType.LIKE,
        read=read,
        created_at=parse_timestamp(record.get("created_at")),
        user=_actor(profiles, record.get("sender_id")),
        message=LIKE_PHRASE,
    )


def build_message(
    record: Mapping[str, Any], profiles: Mapping[str, ProfileSummary]
) -> Notification:
    return Notification(
        id=str(record["id"]),
        type=NotificationType.MESSAGE,
        read=bool(record.get("read", False)),
        created_at=parse_timestamp(record.get("created_at")),
        user=_actor(profiles, record.get("sender_id")),
        message=MESSAGE_PHRASE,
        content=record.get("content"),
    )


def build_view(
    record: Mapping[str, Any], profiles: Mapping[str, ProfileSummary]
) -> Notification:
    """Profile views never count as unread."""

    return Notification(
        id=str(record["id"]),
        type=NotificationType.VIEW,
        read=True,
        created_at=parse_timestamp(record.get("created_at")),
        user=_actor(profiles, record.get("viewer_id")),
        message=VIEW_PHRASE,
    )


def build_match(
    record: Mapping[str, Any],
    profiles: Mapping[str, ProfileSummary],
    *,
    user_id: str,
    read: bool,
) -> Notification:
    return Notification(
        id=str(record["id"]),
        type=NotificationType.MATCH,
        read=read,
        created_at=parse_timestamp(record.get("created_at")),
        user=_actor(profiles, match_counterpart(record, user_id)),
        message=match_phrase(record, user_id),
    )


__all__ = [
    "INTERACTION_LIKE",
    "LIKE_PHRASE",
    "MATCHED_PHRASE",
    "MATCH_REQUEST_PHRASE",
    "MESSAGE_PHRASE",
    "VIEW_PHRASE",
    "build_like",
    "build_match",
    "build_message",
    "build_view",
    "match_counterpart",
    "match_phrase",
]
