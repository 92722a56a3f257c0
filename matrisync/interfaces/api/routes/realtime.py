"""Endpoints exposing and controlling the realtime connection."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status

from matrisync.application.session import RealtimeSession
from matrisync.domain.entities import AuthUser
from matrisync.infrastructure.realtime_sessions import SessionRegistry
from matrisync.interfaces.api.dependencies import (
    get_current_user,
    get_realtime_session,
    get_session_registry,
)
from matrisync.interfaces.api.schemas import ConnectionStatusRead, RealtimeToggleRequest

router = APIRouter(prefix="/realtime", tags=["realtime"])


def _status_to_schema(session: RealtimeSession) -> ConnectionStatusRead:
    manager = session.subscriptions
    return ConnectionStatusRead(
        status=manager.status.value,
        enabled=manager.enabled,
        connection_error=manager.connection_error,
    )


@router.get("/status", response_model=ConnectionStatusRead)
async def get_status(
    session: RealtimeSession = Depends(get_realtime_session),
) -> ConnectionStatusRead:
    return _status_to_schema(session)


@router.post("/reconnect", response_model=ConnectionStatusRead)
async def reconnect(
    session: RealtimeSession = Depends(get_realtime_session),
) -> ConnectionStatusRead:
    """Tear down and recreate the member's realtime channel."""

    await session.subscriptions.reconnect()
    return _status_to_schema(session)


@router.put("/enabled", response_model=ConnectionStatusRead)
async def set_enabled(
    payload: RealtimeToggleRequest,
    session: RealtimeSession = Depends(get_realtime_session),
) -> ConnectionStatusRead:
    await session.subscriptions.set_enabled(payload.enabled)
    return _status_to_schema(session)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(
    current_user: AuthUser = Depends(get_current_user),
    registry: SessionRegistry = Depends(get_session_registry),
) -> None:
    """Sign the member out of the sync layer, dropping all cached state."""

    await registry.close(current_user.id)
