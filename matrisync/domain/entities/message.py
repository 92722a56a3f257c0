"""Domain entity representing a direct message between two members."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Mapping
from uuid import uuid4

from matrisync.utils import parse_timestamp

TEMP_ID_PREFIX = "temp-"


def new_temporary_id() -> str:
    """Return a client-side placeholder id for a not yet persisted message."""

    return f"{TEMP_ID_PREFIX}{uuid4().hex}"


def is_temporary_id(message_id: str) -> bool:
    return message_id.startswith(TEMP_ID_PREFIX)


@dataclass(frozen=True)
class Message:
    """A message as stored by the backend or optimistically shown locally."""

    id: str
    sender_id: str
    receiver_id: str
    content: str
    read: bool
    created_at: datetime

    @property
    def is_temporary(self) -> bool:
        return is_temporary_id(self.id)

    def counterpart_of(self, user_id: str) -> str:
        """Return the other participant of the message from ``user_id``'s side."""

        return self.receiver_id if self.sender_id == user_id else self.sender_id

    def as_read(self) -> "Message":
        return replace(self, read=True)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "Message":
        return cls(
            id=str(record["id"]),
            sender_id=str(record["sender_id"]),
            receiver_id=str(record["receiver_id"]),
            content=record.get("content") or "",
            read=bool(record.get("read", False)),
            created_at=parse_timestamp(record.get("created_at")),
        )


__all__ = ["Message", "TEMP_ID_PREFIX", "is_temporary_id", "new_temporary_id"]
