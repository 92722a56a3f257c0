"""Utility helpers for reusable functionality."""

from .cache import LRUCache
from .datetime import ensure_utc, isoformat_or_none, now_utc, parse_timestamp

__all__ = [
    "LRUCache",
    "ensure_utc",
    "isoformat_or_none",
    "now_utc",
    "parse_timestamp",
]
