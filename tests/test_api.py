"""Integration tests for the HTTP and websocket API."""

from __future__ import annotations

import time
from datetime import datetime, timedelta

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from matrisync.infrastructure.database import Base, SessionLocal, engine, initialize_database
from matrisync.infrastructure.models import (
    MatchModel,
    MessageModel,
    ProfileInteractionModel,
    ProfileViewModel,
)
from matrisync.infrastructure.repositories import ProfileRepository
from matrisync.infrastructure.security import create_access_token
from main import create_app


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client():
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


def _create_profile(email: str, name: str, images=None) -> str:
    with SessionLocal() as session:
        return ProfileRepository(session).create(email=email, name=name, images=images).id


def _headers(profile_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token({'sub': profile_id})}"}


def _wait_for(predicate, timeout: float = 3.0) -> None:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.05)
    raise AssertionError("condition not met in time")


def test_requests_without_valid_token_are_rejected(client: TestClient) -> None:
    assert client.get("/notifications/").status_code in (401, 403)

    response = client.get("/notifications/", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401

    ghost = create_access_token({"sub": "ghost"})
    response = client.get("/notifications/", headers={"Authorization": f"Bearer {ghost}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Profile not found"


def test_feed_lists_seeded_activity(client: TestClient) -> None:
    me = _create_profile("me@example.com", "Me")
    priya = _create_profile("priya@example.com", "Priya", ["priya.jpg"])
    base = datetime(2024, 5, 1, 12, 0)
    with SessionLocal() as session:
        session.add_all(
            [
                ProfileInteractionModel(
                    sender_id=priya,
                    receiver_id=me,
                    interaction_type="like",
                    created_at=base,
                ),
                MessageModel(
                    sender_id=priya,
                    receiver_id=me,
                    content="Hi!",
                    read=False,
                    created_at=base + timedelta(minutes=2),
                ),
                ProfileViewModel(
                    viewer_id=priya,
                    viewed_profile_id=me,
                    created_at=base + timedelta(minutes=1),
                ),
                MatchModel(
                    user1_id=priya,
                    user2_id=me,
                    created_at=base + timedelta(minutes=3),
                ),
            ]
        )
        session.commit()

    response = client.get("/notifications/", headers=_headers(me))

    assert response.status_code == 200
    body = response.json()
    assert [n["type"] for n in body["notifications"]] == ["match", "message", "view", "like"]
    assert body["notifications"][0]["message"] == "sent you a match request"
    assert body["notifications"][1]["content"] == "Hi!"
    assert body["notifications"][1]["user"] == {
        "id": priya,
        "name": "Priya",
        "image": "priya.jpg",
    }
    assert body["unread_count"] == 1

    message_id = body["notifications"][1]["id"]
    response = client.post(f"/notifications/{message_id}/read", headers=_headers(me))
    assert response.status_code == 200
    assert response.json()["unread_count"] == 0

    response = client.post("/notifications/unknown/read", headers=_headers(me))
    assert response.status_code == 404

    response = client.delete("/notifications/", headers=_headers(me))
    assert response.json()["notifications"] == []

    response = client.post("/notifications/refresh", headers=_headers(me))
    assert len(response.json()["notifications"]) == 4
    assert response.json()["unread_count"] == 0


def test_message_flow_between_members(client: TestClient) -> None:
    ravi = _create_profile("ravi@example.com", "Ravi")
    anita = _create_profile("anita@example.com", "Anita")

    assert client.get("/notifications/", headers=_headers(anita)).json()["unread_count"] == 0

    response = client.post(
        f"/conversations/{anita}/messages",
        json={"content": "Hello Anita"},
        headers=_headers(ravi),
    )
    assert response.status_code == 201
    sent = response.json()
    assert sent["pending"] is False
    assert sent["content"] == "Hello Anita"

    def anita_notified() -> bool:
        feed = client.get("/notifications/", headers=_headers(anita)).json()
        return feed["unread_count"] == 1

    _wait_for(anita_notified)

    conversations = client.get("/conversations/", headers=_headers(anita)).json()
    assert conversations[0]["id"] == ravi
    assert conversations[0]["name"] == "Ravi"
    assert conversations[0]["unread_count"] == 1

    history = client.get(f"/conversations/{ravi}/messages", headers=_headers(anita)).json()
    assert [m["content"] for m in history["messages"]] == ["Hello Anita"]

    conversations = client.get("/conversations/", headers=_headers(anita)).json()
    assert conversations[0]["unread_count"] == 0


def test_blank_message_is_rejected(client: TestClient) -> None:
    ravi = _create_profile("ravi@example.com", "Ravi")

    response = client.post(
        "/conversations/someone/messages", json={"content": "   "}, headers=_headers(ravi)
    )
    assert response.status_code == 400

    response = client.post(
        "/conversations/someone/messages", json={"content": ""}, headers=_headers(ravi)
    )
    assert response.status_code == 422


def test_realtime_status_controls(client: TestClient) -> None:
    me = _create_profile("me@example.com", "Me")

    status = client.get("/realtime/status", headers=_headers(me)).json()
    assert status == {"status": "connected", "enabled": True, "connection_error": None}

    status = client.put(
        "/realtime/enabled", json={"enabled": False}, headers=_headers(me)
    ).json()
    assert status["status"] == "disconnected"
    assert status["enabled"] is False

    status = client.put("/realtime/enabled", json={"enabled": True}, headers=_headers(me)).json()
    assert status["status"] == "connected"

    status = client.post("/realtime/reconnect", headers=_headers(me)).json()
    assert status["status"] == "connected"

    response = client.delete("/realtime/session", headers=_headers(me))
    assert response.status_code == 204


def test_websocket_streams_snapshots_and_answers_ping(client: TestClient) -> None:
    me = _create_profile("me@example.com", "Me")
    assert client.get("/realtime/status", headers=_headers(me)).status_code == 200
    token = create_access_token({"sub": me})

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        first = websocket.receive_json()
        second = websocket.receive_json()
        third = websocket.receive_json()
        assert [first["type"], second["type"], third["type"]] == [
            "notifications",
            "connection",
            "conversations",
        ]
        assert first["data"]["unread_count"] == 0
        assert second["data"]["status"] == "connected"

        websocket.send_json({"type": "ping"})
        assert websocket.receive_json() == {"type": "pong"}


def test_websocket_rejects_invalid_token(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/notifications/ws?token=invalid") as websocket:
            websocket.receive_json()
