"""Tests for pushing session snapshots to websocket connections."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from matrisync.application.session import RealtimeSession
from matrisync.domain.entities import AuthUser, Notification, NotificationType, ProfileSummary
from matrisync.infrastructure.notifications import (
    NotificationConnectionManager,
    SessionPublisher,
    serialize_notification,
)

from fakes import FakeClock, FakeGateway, ManualScheduler, settle

pytestmark = pytest.mark.anyio


class RecordingSocket:
    def __init__(self) -> None:
        self.accepted = False
        self.sent: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        self.sent.append(message)


def _notification() -> Notification:
    return Notification(
        id="like-1",
        type=NotificationType.LIKE,
        read=False,
        created_at=datetime(2024, 5, 1, 12, tzinfo=timezone.utc),
        user=ProfileSummary(id="alice", name="Alice", image="alice.jpg"),
        message="liked your profile",
    )


def test_serialize_notification_omits_missing_content():
    payload = serialize_notification(_notification())

    assert payload == {
        "id": "like-1",
        "type": "like",
        "read": False,
        "created_at": "2024-05-01T12:00:00+00:00",
        "user": {"id": "alice", "name": "Alice", "image": "alice.jpg"},
        "message": "liked your profile",
    }


async def test_session_changes_reach_connected_sockets():
    manager = NotificationConnectionManager()
    publisher = SessionPublisher(manager)
    session = RealtimeSession.build(
        FakeGateway(), AuthUser(id="me"), scheduler=ManualScheduler(), clock=FakeClock()
    )
    publisher.attach(session)
    socket = RecordingSocket()
    await manager.connect("me", socket)

    session.feed.add_notification(_notification())
    await settle()

    assert socket.accepted is True
    assert manager.connection_count("me") == 1
    assert len(socket.sent) == 1
    message = socket.sent[0]
    assert message["type"] == "notifications"
    assert message["data"]["unread_count"] == 1
    assert message["data"]["notifications"][0]["id"] == "like-1"

    manager.disconnect("me", socket)
    session.subscriptions.handle_status("CHANNEL_ERROR")
    await settle()
    assert len(socket.sent) == 1
    assert manager.connection_count("me") == 0
