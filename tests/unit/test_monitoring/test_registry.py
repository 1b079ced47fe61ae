"""
Unit tests for the subscriber registry and fan-out delivery.
"""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.websockets import WebSocketState

from conftest import FakeSubscriber
from sysdash.monitoring.registry import Subscriber, SubscriberRegistry, WebSocketSubscriber


class SlowSubscriber(FakeSubscriber):
    async def send_text(self, message: str) -> None:
        await asyncio.sleep(10)


@pytest.mark.unit
class TestSubscriberRegistry:
    """Test cases for SubscriberRegistry."""

    def test_fake_satisfies_protocol(self):
        assert isinstance(FakeSubscriber(), Subscriber)

    def test_add_remove_count(self):
        registry = SubscriberRegistry()
        a, b = FakeSubscriber("a"), FakeSubscriber("b")

        registry.add(a)
        registry.add(b)
        registry.add(a)
        assert registry.count() == 2

        registry.remove(a)
        registry.remove(a)
        assert registry.count() == 1
        assert registry.snapshot() == [b]

    @pytest.mark.asyncio
    async def test_broadcast_reaches_every_open_subscriber(self):
        registry = SubscriberRegistry()
        subscribers = [FakeSubscriber(str(i)) for i in range(3)]
        for sub in subscribers:
            registry.add(sub)

        delivered = await registry.broadcast("hello")

        assert delivered == 3
        assert all(sub.messages == ["hello"] for sub in subscribers)

    @pytest.mark.asyncio
    async def test_broadcast_empty_registry(self):
        assert await SubscriberRegistry().broadcast("hello") == 0

    @pytest.mark.asyncio
    async def test_closed_subscriber_skipped_and_pruned(self):
        registry = SubscriberRegistry()
        good, closed = FakeSubscriber("good"), FakeSubscriber("closed", is_open=False)
        registry.add(good)
        registry.add(closed)

        delivered = await registry.broadcast("tick")

        assert delivered == 1
        assert closed.messages == []
        assert registry.snapshot() == [good]
        assert closed.closed is False

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_affect_others(self):
        registry = SubscriberRegistry()
        good, bad = FakeSubscriber("good"), FakeSubscriber("bad", fail=True)
        registry.add(bad)
        registry.add(good)

        delivered = await registry.broadcast("tick")

        assert delivered == 1
        assert good.messages == ["tick"]
        assert registry.count() == 1
        assert bad.closed is True
        assert good.closed is False

    @pytest.mark.asyncio
    async def test_slow_subscriber_times_out_and_is_closed(self):
        registry = SubscriberRegistry(send_timeout=0.05)
        good, slow = FakeSubscriber("good"), SlowSubscriber("slow")
        registry.add(good)
        registry.add(slow)

        delivered = await registry.broadcast("tick")

        assert delivered == 1
        assert registry.snapshot() == [good]
        assert slow.closed is True
        assert slow.is_open is False

    @pytest.mark.asyncio
    async def test_send_single(self):
        registry = SubscriberRegistry(send_timeout=None)
        sub = FakeSubscriber()
        registry.add(sub)

        assert await registry.send(sub, "first") is True
        sub.is_open = False
        assert await registry.send(sub, "second") is False
        assert sub.messages == ["first"]
        assert registry.count() == 0


class StuckCloseSubscriber(FakeSubscriber):
    async def close(self) -> None:
        await asyncio.sleep(10)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_close_that_hangs_does_not_stall_delivery():
    registry = SubscriberRegistry(send_timeout=0.05)
    stuck = StuckCloseSubscriber("stuck", fail=True)
    registry.add(stuck)

    assert await asyncio.wait_for(registry.send(stuck, "tick"), timeout=1.0) is False
    assert registry.count() == 0


@pytest.mark.unit
class TestWebSocketSubscriber:
    @pytest.mark.asyncio
    async def test_close_connected_socket(self):
        websocket = Mock(application_state=WebSocketState.CONNECTED, close=AsyncMock())

        await WebSocketSubscriber(websocket).close()

        websocket.close.assert_awaited_once_with(code=1011)

    @pytest.mark.asyncio
    async def test_close_already_closed_socket(self):
        websocket = Mock(application_state=WebSocketState.DISCONNECTED, close=AsyncMock())

        await WebSocketSubscriber(websocket).close()

        websocket.close.assert_not_awaited()
