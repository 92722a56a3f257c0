"""Domain entity representing an entry of the notification feed."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from .profile import ProfileSummary


class NotificationType(str, Enum):
    """Categories merged into the notification feed."""

    LIKE = "like"
    MESSAGE = "message"
    VIEW = "view"
    MATCH = "match"


@dataclass(frozen=True)
class Notification:
    """Something another member did that concerns the signed-in member."""

    id: str
    type: NotificationType
    read: bool
    created_at: datetime
    user: ProfileSummary
    message: str
    content: str | None = None

    def as_read(self) -> "Notification":
        """Return a copy of the notification flagged as read."""

        return replace(self, read=True)


__all__ = ["Notification", "NotificationType"]
