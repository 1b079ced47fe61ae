"""
WebSocket client feeding the metrics stream into a DashboardStore.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional, Union

import websockets

from ..models.metrics import parse_message
from .store import DashboardStore

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class MetricsStreamClient:
    """
    Connection state machine with a fixed reconnect delay.

    Any close or error moves to DISCONNECTED and arms a single reconnect
    timer; a reconnect requested while one is already pending is ignored.
    ``stop`` cancels the timer and the connection, after which nothing
    reconnects.
    """

    def __init__(
        self,
        url: str,
        store: DashboardStore,
        reconnect_delay: float = 3.0,
        connect: Optional[Callable[[str], Any]] = None,
    ):
        self.url = url
        self.store = store
        self.reconnect_delay = reconnect_delay
        self._connect = connect or websockets.connect
        self.state = ConnectionState.DISCONNECTED
        self.connection_attempts = 0
        self.messages_received = 0
        self._websocket: Any = None
        self._run_task: Optional[asyncio.Task] = None
        self._reconnect_task: Optional[asyncio.Task] = None
        self._stopped = True

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    def start(self) -> None:
        """Begin connecting on the running event loop."""
        self._stopped = False
        self._launch()

    def _launch(self) -> None:
        if self._run_task is not None and not self._run_task.done():
            return
        self._run_task = asyncio.create_task(self._run(), name="metrics-stream")

    async def _run(self) -> None:
        self.state = ConnectionState.CONNECTING
        self.connection_attempts += 1
        try:
            async with self._connect(self.url) as websocket:
                self._websocket = websocket
                self.state = ConnectionState.CONNECTED
                self.store.set_connected(True)
                self.store.set_error(None)
                logger.info(f"Connected to {self.url}")

                async for frame in websocket:
                    self._handle_frame(frame)

            logger.info(f"Connection to {self.url} closed")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"Connection to {self.url} failed: {type(e).__name__}: {e}")
            self.store.set_error("WebSocket connection error")
        finally:
            self._websocket = None
            self.state = ConnectionState.DISCONNECTED
            self.store.set_connected(False)

        self.request_reconnect()

    def _handle_frame(self, frame: Union[str, bytes]) -> None:
        if isinstance(frame, bytes):
            frame = frame.decode("utf-8", errors="replace")
        try:
            message = parse_message(frame)
        except ValueError as e:
            logger.warning(f"Skipping unparseable message: {e}")
            return
        self.messages_received += 1
        new_alerts = self.store.ingest(message)
        logger.debug(f"Ingested snapshot with {len(new_alerts)} new alerts")

    def request_reconnect(self) -> bool:
        """
        Arm the reconnect timer unless stopped or already armed.

        Returns:
            True if a new timer was armed
        """
        if self._stopped:
            return False
        if self.reconnect_pending:
            logger.debug("Reconnect already pending")
            return False
        logger.info(f"Reconnecting in {self.reconnect_delay}s")
        self._reconnect_task = asyncio.create_task(self._reconnect_after_delay(), name="metrics-stream-reconnect")
        return True

    async def _reconnect_after_delay(self) -> None:
        await asyncio.sleep(self.reconnect_delay)
        if not self._stopped:
            self._launch()

    async def stop(self) -> None:
        self._stopped = True
        for task in (self._reconnect_task, self._run_task):
            if task is None or task.done():
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._reconnect_task = None
        self._run_task = None
        self.state = ConnectionState.DISCONNECTED
        logger.info("Metrics stream client stopped")
