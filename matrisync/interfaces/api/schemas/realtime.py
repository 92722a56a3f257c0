"""Pydantic models for the realtime connection endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class ConnectionStatusRead(BaseModel):
    status: Literal["connected", "disconnected", "connecting", "error"]
    enabled: bool
    connection_error: str | None = None


class RealtimeToggleRequest(BaseModel):
    enabled: bool


__all__ = ["ConnectionStatusRead", "RealtimeToggleRequest"]
