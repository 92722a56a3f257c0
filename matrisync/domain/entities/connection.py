"""Coarse state of a realtime subscription."""

from __future__ import annotations

from enum import Enum


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    ERROR = "error"


__all__ = ["ConnectionStatus"]
