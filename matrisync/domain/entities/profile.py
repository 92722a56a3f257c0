"""Domain entity describing the public summary of a member profile."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

ANONYMOUS_NAME = "Anonymous"


@dataclass(frozen=True)
class ProfileSummary:
    """Identifier, display name and avatar used to render notifications."""

    id: str
    name: str
    image: str | None = None

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "ProfileSummary":
        """Build a summary from a raw ``profiles`` row."""

        images = record.get("images") or []
        image = images[0] if isinstance(images, (list, tuple)) and images else None
        name = record.get("name") or record.get("full_name") or ANONYMOUS_NAME
        return cls(id=str(record["id"]), name=name, image=image)

    @classmethod
    def anonymous(cls, user_id: str) -> "ProfileSummary":
        """Fallback used when the profile could not be resolved."""

        return cls(id=str(user_id), name=ANONYMOUS_NAME, image=None)


__all__ = ["ANONYMOUS_NAME", "ProfileSummary"]
