"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from matrisync.domain.entities import Notification


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[str] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[str]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationUserRead(BaseModel):
    id: str
    name: str
    image: str | None = None


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    type: Literal["like", "message", "view", "match"]
    read: bool
    created_at: datetime
    user: NotificationUserRead
    message: str
    content: str | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id,
            type=notification.type.value,
            read=notification.read,
            created_at=notification.created_at,
            user=NotificationUserRead(
                id=notification.user.id,
                name=notification.user.name,
                image=notification.user.image,
            ),
            message=notification.message,
            content=notification.content,
        )


class NotificationFeedRead(BaseModel):
    """The merged feed together with its unread counter."""

    notifications: list[NotificationRead] = Field(default_factory=list)
    unread_count: int = 0
    is_loading: bool = False
    connection_error: str | None = None


__all__ = [
    "NotificationFeedRead",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "NotificationUserRead",
]
