"""Helpers for working with timezone-aware datetimes.

Records coming back from the gateway may carry ``created_at`` either as a
``datetime`` (SQLAlchemy rows, naive and implicitly UTC) or as an ISO 8601
string (change-feed payloads). Everything in the domain layer is normalized to
aware UTC datetimes so feeds can be sorted without mixing naive and aware
values.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Final

_EPOCH: Final[datetime] = datetime(1970, 1, 1, tzinfo=timezone.utc)


def now_utc() -> datetime:
    """Return the current time as an aware UTC datetime."""

    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Normalize ``value`` so it is expressed in UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Coerce ``value`` into an aware UTC datetime.

    Unparseable or missing values collapse to the Unix epoch so they sort last
    in a newest-first feed instead of raising while rendering notifications.
    """

    if isinstance(value, datetime):
        return ensure_utc(value) or _EPOCH
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return ensure_utc(datetime.fromisoformat(text)) or _EPOCH
        except ValueError:
            return _EPOCH
    return _EPOCH


def isoformat_or_none(value: datetime | None) -> str | None:
    """Return the ISO representation of ``value`` or ``None``."""

    return value.isoformat() if value else None
