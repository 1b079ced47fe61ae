"""
Timer-driven broadcast of metrics snapshots to connected subscribers.

This module provides the BroadcastLoop that samples the metric source,
evaluates alerts against the current thresholds and pushes one combined
message per tick to every subscriber in the registry.
"""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..alerts.evaluator import evaluate_alerts
from ..alerts.thresholds import ThresholdStore
from ..collectors.base import MetricSource
from ..config.validators import MIN_UPDATE_INTERVAL_SECONDS
from ..models.metrics import MetricsMessage
from ..validation import ValidationError
from .registry import Subscriber, SubscriberRegistry

logger = logging.getLogger(__name__)


class BroadcastState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass
class BroadcastStats:
    ticks: int = 0
    skipped_ticks: int = 0
    deliveries: int = 0
    source_errors: int = 0
    last_tick_duration: float = 0.0


class BroadcastLoop:
    """
    Periodic capture-evaluate-deliver loop.

    The next tick is scheduled ``interval_seconds`` after the previous one
    finished, so ticks never overlap however slow the source is. Ticks with
    no subscribers do no work at all, the source included.
    """

    def __init__(
        self,
        source: MetricSource,
        registry: SubscriberRegistry,
        thresholds: ThresholdStore,
        interval_seconds: float = 2.0,
        alerts_enabled: bool = True,
    ):
        if interval_seconds < MIN_UPDATE_INTERVAL_SECONDS:
            raise ValidationError(
                f"Broadcast interval must be >= {MIN_UPDATE_INTERVAL_SECONDS}s, got {interval_seconds}",
                field_name="interval_seconds",
                value=interval_seconds,
            )
        self.source = source
        self.registry = registry
        self.thresholds = thresholds
        self.interval_seconds = interval_seconds
        self.alerts_enabled = alerts_enabled
        self._task: Optional[asyncio.Task] = None
        self._stats = BroadcastStats()

    @property
    def state(self) -> BroadcastState:
        if self._task is not None and not self._task.done():
            return BroadcastState.RUNNING
        return BroadcastState.IDLE

    def start(self) -> None:
        """Arm the loop on the running event loop; a no-op if already running."""
        if self.state is BroadcastState.RUNNING:
            logger.debug("Broadcast loop already running")
            return
        self._task = asyncio.create_task(self._run(), name="broadcast-loop")
        logger.info(f"Broadcast loop started (interval: {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the loop and wait for it; no tick runs after this returns."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info(f"Broadcast loop stopped after {self._stats.ticks} ticks")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Broadcast tick failed: {type(e).__name__}: {e}", exc_info=True)
            await asyncio.sleep(self.interval_seconds)

    async def build_message(self) -> MetricsMessage:
        """
        Capture a snapshot and evaluate it into one wire message.

        Raises:
            Exception: Whatever the source raises; callers decide whether to skip
        """
        snapshot = await self.source.capture()
        if not self.alerts_enabled:
            return MetricsMessage(data=snapshot, alerts=[])

        disk_usage = await self.source.disk_usage()
        alerts = evaluate_alerts(snapshot, self.thresholds.get(), disk_usage=disk_usage)
        return MetricsMessage(data=snapshot, alerts=alerts)

    async def tick(self) -> int:
        """
        Run one broadcast cycle.

        Returns:
            Number of subscribers the message was delivered to
        """
        if self.registry.count() == 0:
            self._stats.skipped_ticks += 1
            return 0

        started = time.monotonic()
        try:
            message = await self.build_message()
        except Exception as e:
            self._stats.source_errors += 1
            logger.error(f"Metric source failed, skipping tick: {type(e).__name__}: {e}")
            return 0

        delivered = await self.registry.broadcast(message.to_json())
        self._stats.ticks += 1
        self._stats.deliveries += delivered
        self._stats.last_tick_duration = time.monotonic() - started
        logger.debug(
            f"Tick delivered to {delivered} subscribers with {len(message.alerts)} alerts "
            f"in {self._stats.last_tick_duration:.3f}s"
        )
        return delivered

    async def send_initial(self, subscriber: Subscriber) -> bool:
        """Deliver one out-of-band message to a newly connected subscriber."""
        try:
            message = await self.build_message()
        except Exception as e:
            self._stats.source_errors += 1
            logger.error(f"Failed to capture initial metrics: {type(e).__name__}: {e}")
            return False
        delivered = await self.registry.send(subscriber, message.to_json())
        if delivered:
            self._stats.deliveries += 1
        return delivered

    def stats(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "interval_seconds": self.interval_seconds,
            "subscribers": self.registry.count(),
            **asdict(self._stats),
        }
