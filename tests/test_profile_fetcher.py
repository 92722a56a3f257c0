"""Tests for the debounced profile batch fetcher."""

from __future__ import annotations

import asyncio

import pytest

from matrisync.application.use_cases.profiles import ProfileFetcher
from matrisync.domain.entities import ProfileSummary
from matrisync.domain.errors import NetworkError

from fakes import FakeGateway, ManualScheduler, settle

pytestmark = pytest.mark.anyio


def _gateway() -> FakeGateway:
    gateway = FakeGateway()
    gateway.add("profiles", id="alice", name="Alice", images=["alice.jpg"])
    gateway.add("profiles", id="bob", name=None, full_name="Bob Builder", images=[])
    gateway.add("profiles", id="carol", images=None)
    return gateway


async def test_requests_inside_window_share_one_read():
    gateway = _gateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    tasks = [
        asyncio.create_task(fetcher.get(user_id)) for user_id in ("alice", "bob", "alice")
    ]
    await settle()

    assert fetcher.pending_ids == {"alice", "bob"}
    assert len(scheduler.pending) == 1
    assert gateway.reads("profiles") == []

    scheduler.advance(0.1)
    alice, bob, alice_again = await asyncio.gather(*tasks)

    reads = gateway.reads("profiles")
    assert len(reads) == 1
    assert reads[0].filters == {"id": ["alice", "bob"]}
    assert alice == ProfileSummary(id="alice", name="Alice", image="alice.jpg")
    assert alice_again == alice
    assert bob == ProfileSummary(id="bob", name="Bob Builder", image=None)
    assert fetcher.pending_ids == frozenset()


async def test_window_restarts_on_every_request():
    gateway = _gateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    first = asyncio.create_task(fetcher.get("alice"))
    await settle()
    scheduler.advance(0.05)
    second = asyncio.create_task(fetcher.get("bob"))
    await settle()

    assert scheduler.advance(0.06) == 0
    await settle()
    assert gateway.reads("profiles") == []

    assert scheduler.advance(0.05) == 1
    await asyncio.gather(first, second)
    assert len(gateway.reads("profiles")) == 1


async def test_cached_profiles_are_served_without_a_read():
    gateway = _gateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    task = asyncio.create_task(fetcher.get("carol"))
    await settle()
    scheduler.advance(0.1)
    carol = await task

    assert carol == ProfileSummary(id="carol", name="Anonymous", image=None)
    assert await fetcher.get("carol") == carol
    assert len(gateway.reads("profiles")) == 1
    assert scheduler.pending == []


async def test_failed_batch_resolves_every_caller_with_none():
    gateway = _gateway()
    gateway.read_errors["profiles"] = NetworkError("offline")
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    tasks = [asyncio.create_task(fetcher.get(user_id)) for user_id in ("alice", "bob")]
    await settle()
    scheduler.advance(0.1)

    assert await asyncio.gather(*tasks) == [None, None]
    assert "alice" not in fetcher.cache

    del gateway.read_errors["profiles"]
    task = asyncio.create_task(fetcher.get("alice"))
    await settle()
    scheduler.advance(0.1)
    assert (await task).name == "Alice"


async def test_get_many_skips_unknown_ids():
    gateway = _gateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    task = asyncio.create_task(fetcher.get_many(["alice", "ghost", "alice", ""]))
    await settle()
    scheduler.advance(0.1)
    profiles = await task

    assert set(profiles) == {"alice"}
    assert gateway.reads("profiles")[0].filters == {"id": ["alice", "ghost"]}


async def test_clear_forgets_cached_profiles():
    gateway = _gateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)
    fetcher.cache.set("alice", ProfileSummary(id="alice", name="Stale"))

    fetcher.clear()

    assert len(fetcher.cache) == 0


class _MalformedGateway(FakeGateway):
    async def read(self, collection, filters=None, *, order=None, limit=None):
        await super().read(collection, filters, order=order, limit=limit)
        return [{"name": "No id"}]


async def test_malformed_batch_still_wakes_every_caller():
    gateway = _MalformedGateway()
    scheduler = ManualScheduler()
    fetcher = ProfileFetcher(gateway, scheduler, window=0.1)

    tasks = [asyncio.create_task(fetcher.get(user_id)) for user_id in ("alice", "bob")]
    await settle()
    scheduler.advance(0.1)

    results = await asyncio.wait_for(asyncio.gather(*tasks), timeout=1)

    assert results == [None, None]
    assert fetcher.pending_ids == frozenset()
    assert len(gateway.reads("profiles")) == 1
