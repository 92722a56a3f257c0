"""Conversation list, message cache and optimistic sending."""

from .conversation_store import (
    MESSAGES_COLLECTION,
    SEND_CONNECTION_ALERT,
    SEND_FAILED_ALERT,
    ConversationStore,
)

__all__ = [
    "ConversationStore",
    "MESSAGES_COLLECTION",
    "SEND_CONNECTION_ALERT",
    "SEND_FAILED_ALERT",
]
