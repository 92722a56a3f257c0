"""Tests for conversation caching, optimistic sends and realtime reconciliation."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from matrisync.application.use_cases.messages import (
    SEND_CONNECTION_ALERT,
    SEND_FAILED_ALERT,
    ConversationStore,
)
from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.domain.entities import AuthUser
from matrisync.domain.errors import NetworkError, ServerError
from matrisync.infrastructure.scheduling import AsyncioScheduler

from fakes import FakeClock, FakeGateway, settle

pytestmark = pytest.mark.anyio

ME = AuthUser(id="me")
T0 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _at(minutes: int) -> datetime:
    return T0 + timedelta(minutes=minutes)


@pytest.fixture
def gateway():
    gateway = FakeGateway()
    gateway.add("profiles", id="bob", name="Bob", images=["bob.jpg"])
    gateway.add("profiles", id="carol", name="Carol")
    gateway.add(
        "messages",
        id="m-1",
        sender_id="bob",
        receiver_id="me",
        content="Hi!",
        read=False,
        created_at=_at(0),
    )
    gateway.add(
        "messages",
        id="m-2",
        sender_id="me",
        receiver_id="bob",
        content="Hello Bob",
        read=True,
        created_at=_at(1),
    )
    gateway.add(
        "messages",
        id="m-3",
        sender_id="carol",
        receiver_id="me",
        content="Are you there?",
        read=False,
        created_at=_at(5),
    )
    return gateway


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(gateway, clock):
    profiles = ProfileFetcher(gateway, AsyncioScheduler(), window=0)
    return ConversationStore(gateway, ME, profiles, clock)


def _history_reads(gateway):
    return [call for call in gateway.reads("messages") if "sender_id" in call.filters and "receiver_id" in call.filters]


async def test_fetch_conversations_summarizes_latest_activity(store):
    summaries = await store.fetch_conversations()

    assert [s.id for s in summaries] == ["carol", "bob"]
    carol, bob = summaries
    assert (carol.name, carol.last_message, carol.unread_count) == ("Carol", "Are you there?", 1)
    assert (bob.name, bob.avatar, bob.last_message, bob.unread_count) == (
        "Bob",
        "bob.jpg",
        "Hello Bob",
        1,
    )


async def test_fetch_messages_returns_history_oldest_first_and_marks_read(gateway, store):
    messages = await store.select_conversation("bob")

    assert [m.id for m in messages] == ["m-1", "m-2"]
    assert store.messages == messages
    mark = gateway.writes("messages")[-1]
    assert mark.payload == {"read": True}
    assert mark.filters == {"sender_id": "bob", "receiver_id": "me", "read": False}


async def test_cached_history_is_reused_until_ttl_expires(gateway, store, clock):
    await store.fetch_messages("bob")
    assert len(_history_reads(gateway)) == 2

    clock.advance(29)
    await store.fetch_messages("bob")
    assert len(_history_reads(gateway)) == 2

    clock.advance(2)
    await store.fetch_messages("bob")
    assert len(_history_reads(gateway)) == 4


async def test_history_keeps_newest_messages_within_limit(gateway, clock):
    for index in range(60):
        gateway.add(
            "messages",
            id=f"bulk-{index:02d}",
            sender_id="me" if index % 2 else "bob",
            receiver_id="bob" if index % 2 else "me",
            content=str(index),
            read=True,
            created_at=_at(100 + index),
        )
    profiles = ProfileFetcher(gateway, AsyncioScheduler(), window=0)
    store = ConversationStore(gateway, ME, profiles, clock, fetch_limit=50)

    messages = await store.fetch_messages("bob")

    assert len(messages) == 50
    assert messages[-1].id == "bulk-59"
    assert messages[0].id == "bulk-10"


async def test_optimistic_message_is_replaced_by_stored_record(gateway, store):
    await store.select_conversation("bob")
    gateway.write_gate = asyncio.Event()
    gateway.next_ids.append("m-new")
    store.set_compose_text("  See you soon  ")

    task = asyncio.create_task(store.send_message())
    await settle()

    pending = store.messages[-1]
    assert pending.is_temporary
    assert pending.id.startswith("temp-")
    assert pending.content == "See you soon"
    assert store.sending is True
    assert store.compose_text == ""

    gateway.write_gate.set()
    stored = await task

    assert stored.id == "m-new"
    assert [m.id for m in store.messages][-1] == "m-new"
    assert not any(m.is_temporary for m in store.messages)
    assert store.sending is False
    assert store.alert is None
    assert store.conversations[0].id == "bob"
    assert store.conversations[0].last_message == "See you soon"


async def test_realtime_confirmation_before_insert_response(gateway, store):
    await store.select_conversation("bob")
    gateway.write_gate = asyncio.Event()
    gateway.next_ids.append("m-race")

    task = asyncio.create_task(store.send_message("bob", "racing"))
    await settle()
    await store.handle_incoming_message(
        {
            "id": "m-race",
            "sender_id": "me",
            "receiver_id": "bob",
            "content": "racing",
            "read": False,
            "created_at": _at(10).isoformat(),
        }
    )
    gateway.write_gate.set()
    await task

    ids = [m.id for m in store.messages]
    assert ids.count("m-race") == 1
    assert not any(m.is_temporary for m in store.messages)


@pytest.mark.parametrize(
    ("error", "alert"),
    [
        (ServerError("insert failed"), SEND_FAILED_ALERT),
        (NetworkError("offline"), SEND_CONNECTION_ALERT),
    ],
)
async def test_failed_send_rolls_back(gateway, store, error, alert):
    await store.select_conversation("bob")
    before = list(store.messages)
    gateway.write_errors["messages"] = error
    store.set_compose_text("lost words")

    result = await store.send_message()

    assert result is None
    assert store.messages == before
    assert store.compose_text == "lost words"
    assert store.alert == alert
    assert store.sending is False


async def test_blank_or_concurrent_sends_are_ignored(gateway, store):
    await store.select_conversation("bob")
    writes_before = len(gateway.writes("messages"))

    assert await store.send_message("bob", "   ") is None
    store.sending = True
    assert await store.send_message("bob", "hello") is None
    store.sending = False
    assert await store.send_message(None, "no conversation") is not None
    store.close_conversation()
    assert await store.send_message(None, "nobody") is None

    assert len(gateway.writes("messages")) == writes_before + 1


async def test_incoming_message_for_open_conversation_is_marked_read(gateway, store):
    await store.select_conversation("bob")

    await store.handle_incoming_message(
        {
            "id": "m-live",
            "sender_id": "bob",
            "receiver_id": "me",
            "content": "ping",
            "read": False,
            "created_at": _at(20).isoformat(),
        }
    )

    assert store.messages[-1].id == "m-live"
    assert store.messages[-1].read is True
    assert gateway.writes("messages")[-1].filters == {"id": "m-live"}
    assert store.get_conversation("bob").unread_count == 0


async def test_incoming_message_for_other_conversation_bumps_unread(gateway, store):
    await store.fetch_conversations()
    await store.select_conversation("bob")
    writes_before = len(gateway.writes("messages"))

    await store.handle_incoming_message(
        {
            "id": "m-carol",
            "sender_id": "carol",
            "receiver_id": "me",
            "content": "again",
            "read": False,
            "created_at": _at(30).isoformat(),
        }
    )

    assert len(gateway.writes("messages")) == writes_before
    assert all(m.id != "m-carol" for m in store.messages)
    carol = store.conversations[0]
    assert (carol.id, carol.last_message, carol.unread_count) == ("carol", "again", 2)


async def test_read_receipt_updates_open_conversation(store):
    await store.select_conversation("bob")
    sent = await store.send_message("bob", "did you read this?")

    store.handle_message_updated(
        {
            "id": sent.id,
            "sender_id": "me",
            "receiver_id": "bob",
            "content": sent.content,
            "read": True,
            "created_at": sent.created_at.isoformat(),
        }
    )

    assert store.messages[-1].read is True
    assert store.cache.get("bob").messages[-1].read is True


async def test_refetch_during_send_keeps_the_confirmed_message(gateway, store, clock):
    await store.select_conversation("bob")
    gateway.write_gate = asyncio.Event()
    gateway.next_ids.append("m-sent")

    send = asyncio.create_task(store.send_message("bob", "hello"))
    await settle()
    clock.advance(31)
    refetch = asyncio.create_task(store.fetch_messages("bob"))
    await settle(10)

    assert any(m.is_temporary for m in store.messages)
    assert any(m.is_temporary for m in store.cache.get("bob").messages)

    gateway.write_gate.set()
    stored = await send
    await refetch

    assert stored.id == "m-sent"
    live_ids = [m.id for m in store.messages]
    cached_ids = [m.id for m in store.cache.get("bob").messages]
    assert live_ids.count("m-sent") == 1
    assert cached_ids.count("m-sent") == 1
    assert not any(m.is_temporary for m in store.messages)
    assert not any(m.is_temporary for m in store.cache.get("bob").messages)


async def test_confirmed_message_is_added_when_placeholder_was_dropped(gateway, store):
    await store.select_conversation("bob")
    gateway.write_gate = asyncio.Event()
    gateway.next_ids.append("m-late")

    send = asyncio.create_task(store.send_message("bob", "still there?"))
    await settle()
    store.messages = [m for m in store.messages if not m.is_temporary]
    entry = store.cache.get("bob")
    entry.messages = [m for m in entry.messages if not m.is_temporary]

    gateway.write_gate.set()
    await send

    assert store.messages[-1].id == "m-late"
    assert store.cache.get("bob").messages[-1].id == "m-late"


async def test_confirmation_for_closed_conversation_stays_out_of_live_view(gateway, store):
    await store.select_conversation("bob")
    gateway.write_gate = asyncio.Event()

    send = asyncio.create_task(store.send_message("bob", "bye"))
    await settle()
    store.close_conversation()

    gateway.write_gate.set()
    stored = await send

    assert store.messages == []
    assert store.cache.get("bob").messages[-1].id == stored.id
