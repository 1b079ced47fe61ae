"""
Registry of connected stream subscribers and fan-out delivery.
"""

import asyncio
import logging
import threading
from typing import List, Optional, Protocol, runtime_checkable

from fastapi import WebSocket, status
from fastapi.websockets import WebSocketState

logger = logging.getLogger(__name__)


@runtime_checkable
class Subscriber(Protocol):
    """Anything that can receive text frames and report whether it is open."""

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, message: str) -> None: ...

    async def close(self) -> None: ...


class WebSocketSubscriber:
    """Adapts a FastAPI WebSocket to the Subscriber protocol."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, message: str) -> None:
        await self.websocket.send_text(message)

    async def close(self) -> None:
        if self.websocket.application_state == WebSocketState.CONNECTED:
            await self.websocket.close(code=status.WS_1011_INTERNAL_ERROR)

    def __repr__(self) -> str:
        client = self.websocket.client
        return f"WebSocketSubscriber({client.host}:{client.port})" if client else "WebSocketSubscriber()"


class SubscriberRegistry:
    """
    Set of currently connected subscribers.

    Delivery is unordered and independent per subscriber. A closed subscriber
    is pruned. One whose send raises or exceeds ``send_timeout`` is pruned and
    closed.
    """

    def __init__(self, send_timeout: Optional[float] = 5.0):
        self.send_timeout = send_timeout
        self._subscribers: set = set()
        self._lock = threading.Lock()

    def add(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.add(subscriber)
            total = len(self._subscribers)
        logger.info(f"Subscriber connected: {subscriber!r} ({total} total)")

    def remove(self, subscriber: Subscriber) -> None:
        with self._lock:
            if subscriber not in self._subscribers:
                return
            self._subscribers.discard(subscriber)
            total = len(self._subscribers)
        logger.info(f"Subscriber disconnected: {subscriber!r} ({total} remaining)")

    def count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def snapshot(self) -> List[Subscriber]:
        with self._lock:
            return list(self._subscribers)

    async def send(self, subscriber: Subscriber, message: str) -> bool:
        """
        Deliver one message to one subscriber.

        Returns:
            True on success; False if the subscriber was closed or the send
            failed, in which case it has been removed from the registry (and
            closed, for a failed send)
        """
        if not subscriber.is_open:
            logger.debug(f"Skipping closed subscriber {subscriber!r}")
            self.remove(subscriber)
            return False
        try:
            if self.send_timeout is not None:
                await asyncio.wait_for(subscriber.send_text(message), timeout=self.send_timeout)
            else:
                await subscriber.send_text(message)
            return True
        except asyncio.TimeoutError:
            logger.warning(f"Send to {subscriber!r} timed out after {self.send_timeout}s")
        except Exception as e:
            logger.warning(f"Failed to send to {subscriber!r}: {type(e).__name__}: {e}")
        self.remove(subscriber)
        await self._close(subscriber)
        return False

    async def _close(self, subscriber: Subscriber) -> None:
        try:
            if self.send_timeout is not None:
                await asyncio.wait_for(subscriber.close(), timeout=self.send_timeout)
            else:
                await subscriber.close()
        except Exception as e:
            logger.debug(f"Closing {subscriber!r} failed: {type(e).__name__}: {e}")

    async def broadcast(self, message: str) -> int:
        """
        Send a message to every open subscriber concurrently.

        Returns:
            Number of successful deliveries
        """
        subscribers = self.snapshot()
        if not subscribers:
            return 0

        results = await asyncio.gather(
            *(self.send(subscriber, message) for subscriber in subscribers),
            return_exceptions=True,
        )
        delivered = sum(1 for result in results if result is True)

        failed_count = len(subscribers) - delivered
        if failed_count > 0:
            logger.warning(f"Failed to send to {failed_count}/{len(subscribers)} subscribers")
        return delivered
