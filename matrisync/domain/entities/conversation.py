"""Domain entities describing conversations and their cached history."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from .message import Message


@dataclass
class ConversationSummary:
    """Row of the conversation list: the counterpart and the latest activity."""

    id: str
    name: str
    avatar: str | None = None
    last_message: str = ""
    last_message_time: datetime | None = None
    unread_count: int = 0


@dataclass
class ConversationCacheEntry:
    """Messages of one conversation plus the clock reading of the last fetch."""

    conversation_id: str
    messages: list[Message] = field(default_factory=list)
    last_fetched_at: float = 0.0

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.last_fetched_at < ttl


__all__ = ["ConversationCacheEntry", "ConversationSummary"]
