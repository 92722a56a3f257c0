"""Notification feed aggregation."""

from .builders import (
    LIKE_PHRASE,
    MATCHED_PHRASE,
    MATCH_REQUEST_PHRASE,
    MESSAGE_PHRASE,
    VIEW_PHRASE,
)
from .feed import (
    FETCH_CONNECTION_ERROR,
    INTERACTIONS_COLLECTION,
    MATCHES_COLLECTION,
    MESSAGES_COLLECTION,
    VIEWS_COLLECTION,
    NotificationFeed,
)

__all__ = [
    "FETCH_CONNECTION_ERROR",
    "INTERACTIONS_COLLECTION",
    "LIKE_PHRASE",
    "MATCHED_PHRASE",
    "MATCHES_COLLECTION",
    "MATCH_REQUEST_PHRASE",
    "MESSAGES_COLLECTION",
    "MESSAGE_PHRASE",
    "NotificationFeed",
    "VIEWS_COLLECTION",
    "VIEW_PHRASE",
]
