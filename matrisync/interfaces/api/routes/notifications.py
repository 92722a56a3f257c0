"""Endpoints and websocket handler for the notification feed."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, WebSocketDisconnect, status

from matrisync.application.session import RealtimeSession
from matrisync.infrastructure.database import SessionLocal
from matrisync.infrastructure.notifications import (
    notification_manager,
    serialize_connection,
    serialize_conversations,
    serialize_feed,
)
from matrisync.interfaces.api.dependencies import get_realtime_session, resolve_current_user
from matrisync.interfaces.api.schemas import (
    NotificationFeedRead,
    NotificationMarkReadRequest,
    NotificationRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _feed_to_schema(session: RealtimeSession) -> NotificationFeedRead:
    feed = session.feed
    return NotificationFeedRead(
        notifications=[NotificationRead.from_entity(n) for n in feed.notifications],
        unread_count=feed.unread_count,
        is_loading=feed.is_loading,
        connection_error=feed.connection_error,
    )


@router.get("/", response_model=NotificationFeedRead)
async def list_notifications(
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    """Return the member's current notification feed."""

    return _feed_to_schema(session)


@router.post("/refresh", response_model=NotificationFeedRead)
async def refresh_notifications(
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    """Rebuild the feed from the backend."""

    await session.feed.fetch_notifications()
    return _feed_to_schema(session)


@router.post("/read", response_model=NotificationFeedRead)
async def mark_notifications_read(
    payload: NotificationMarkReadRequest,
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    for notification_id in payload.unique_ids():
        await session.feed.mark_as_read(notification_id)
    return _feed_to_schema(session)


@router.post("/read-all", response_model=NotificationFeedRead)
async def mark_all_notifications_read(
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    await session.feed.mark_all_as_read()
    return _feed_to_schema(session)


@router.post("/{notification_id}/read", response_model=NotificationFeedRead)
async def mark_notification_read(
    notification_id: str,
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    if session.feed.get(notification_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found",
        )
    await session.feed.mark_as_read(notification_id)
    return _feed_to_schema(session)


@router.delete("/", response_model=NotificationFeedRead)
async def clear_notifications(
    session: RealtimeSession = Depends(get_realtime_session),
) -> NotificationFeedRead:
    session.feed.clear_notifications()
    return _feed_to_schema(session)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams session state to the authenticated member."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    db = SessionLocal()
    try:
        user = resolve_current_user(token, db)
    except HTTPException:
        await websocket.close(code=1008)
        return
    finally:
        db.close()

    registry = websocket.app.state.session_registry
    session = await registry.open(user)

    await notification_manager.connect(user.id, websocket)
    try:
        await websocket.send_json({"type": "notifications", "data": serialize_feed(session)})
        await websocket.send_json({"type": "connection", "data": serialize_connection(session)})
        await websocket.send_json(
            {"type": "conversations", "data": serialize_conversations(session)}
        )
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list):
                    for notification_id in dict.fromkeys(str(i) for i in ids):
                        await session.feed.mark_as_read(notification_id)
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user.id, websocket)
    except Exception:
        logger.exception("Notification websocket for %s failed", user.id)
        notification_manager.disconnect(user.id, websocket)
        raise
