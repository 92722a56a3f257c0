"""Pydantic models for conversations and messages."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from matrisync.domain.entities import ConversationSummary, Message


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class MessageRead(BaseModel):
    id: str
    sender_id: str
    receiver_id: str
    content: str
    read: bool
    created_at: datetime
    pending: bool = Field(
        default=False, description="True while the message only exists locally"
    )

    @classmethod
    def from_entity(cls, message: Message) -> "MessageRead":
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            receiver_id=message.receiver_id,
            content=message.content,
            read=message.read,
            created_at=message.created_at,
            pending=message.is_temporary,
        )


class ConversationSummaryRead(BaseModel):
    id: str
    name: str
    avatar: str | None = None
    last_message: str = ""
    last_message_time: datetime | None = None
    unread_count: int = 0

    @classmethod
    def from_entity(cls, summary: ConversationSummary) -> "ConversationSummaryRead":
        return cls(
            id=summary.id,
            name=summary.name,
            avatar=summary.avatar,
            last_message=summary.last_message,
            last_message_time=summary.last_message_time,
            unread_count=summary.unread_count,
        )


class ConversationRead(BaseModel):
    """Messages of the open conversation, oldest first."""

    conversation_id: str
    messages: list[MessageRead] = Field(default_factory=list)


__all__ = [
    "ConversationRead",
    "ConversationSummaryRead",
    "MessageCreate",
    "MessageRead",
]
