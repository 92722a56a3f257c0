"""Tests for session scoped ownership of the sync state."""

from __future__ import annotations

import pytest

from matrisync.application.auth_state import AuthState
from matrisync.application.session import RealtimeSession, SessionController, SessionOptions
from matrisync.domain.entities import AuthUser, ConnectionStatus

from fakes import FakeClock, FakeGateway, ManualScheduler

pytestmark = pytest.mark.anyio


def _controller(gateway, opened=None):
    def factory(user):
        return RealtimeSession.build(
            gateway,
            user,
            scheduler=ManualScheduler(),
            clock=FakeClock(),
            options=SessionOptions(batch_window=0.1),
        )

    return SessionController(AuthState(), factory, on_open=opened)


async def test_sign_in_opens_and_sign_out_closes_session():
    gateway = FakeGateway()
    opened = []
    controller = _controller(gateway, opened.append)

    await controller.auth.sign_in(AuthUser(id="alice"))

    session = controller.session
    assert session is not None
    assert opened == [session]
    assert session.subscriptions.status is ConnectionStatus.CONNECTED
    assert len(gateway.reads("messages")) == 1

    await controller.auth.sign_out()

    assert controller.session is None
    assert gateway.removed == gateway.channels
    assert session.subscriptions.status is ConnectionStatus.DISCONNECTED


async def test_switching_members_discards_previous_state():
    gateway = FakeGateway()
    controller = _controller(gateway)

    await controller.auth.sign_in(AuthUser(id="alice"))
    first = controller.session
    first.profiles.cache.set("x", object())

    await controller.auth.sign_in(AuthUser(id="bob"))
    second = controller.session

    assert second is not first
    assert second.user.id == "bob"
    assert "x" not in second.profiles.cache
    assert first.subscriptions.channel is None
    assert second.subscriptions.channel.name.startswith("notifications:bob:")


async def test_signing_in_twice_keeps_the_session():
    gateway = FakeGateway()
    controller = _controller(gateway)
    user = AuthUser(id="alice")

    await controller.auth.sign_in(user)
    session = controller.session
    await controller.auth.sign_in(user)

    assert controller.session is session
    assert len(gateway.channels) == 1


async def test_session_listener_is_removed_on_close():
    gateway = FakeGateway()
    controller = _controller(gateway)
    await controller.auth.sign_in(AuthUser(id="alice"))
    session = controller.session
    topics = []
    session.add_listener(topics.append)

    await session.close()
    topics.clear()
    session.feed.clear_notifications()

    assert topics == []


async def test_realtime_disabled_session_skips_channel():
    gateway = FakeGateway()
    controller = SessionController(
        AuthState(),
        lambda user: RealtimeSession.build(
            gateway,
            user,
            scheduler=ManualScheduler(),
            clock=FakeClock(),
            options=SessionOptions(realtime_enabled=False),
        ),
    )

    await controller.auth.sign_in(AuthUser(id="alice"))

    assert gateway.channels == []
    assert controller.session.subscriptions.status is ConnectionStatus.DISCONNECTED
