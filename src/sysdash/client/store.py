"""
Client-side state holder fed by the metrics stream.

The DashboardStore owns everything a viewer derives from the stream: the
latest snapshot, the chart window, the de-duplicated alert list and the
forwarding of samples to the durable buffer. Persistence and notification
side effects go through injected collaborators.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional, Set, Union

from ..alerts.evaluator import evaluate_alerts
from ..models.alerts import DEFAULT_THRESHOLDS, Alert, AlertSeverity, AlertThresholds
from ..models.history import HistorySample, PersistedSample
from ..models.metrics import MetricsMessage, MetricsSnapshot, utc_now
from ..storage.settings import SettingsStore
from ..storage.timeseries import MetricsBuffer
from .history import HistoryWindow
from .notifications import NOTIFICATION_TITLE, NotificationPermission, Notifier, NullNotifier

logger = logging.getLogger(__name__)

ALERTS_KEY = "alerts"
THRESHOLDS_KEY = "alert_thresholds"
ALERTS_ENABLED_KEY = "alerts_enabled"


class DashboardStore:
    """
    Explicit state holder for one client process.

    ``ingest`` updates the history window synchronously, then derives alerts
    against the store's own thresholds, de-duplicated per category against
    the non-dismissed alerts, and finally schedules the durable append in the
    background.
    """

    def __init__(
        self,
        settings: SettingsStore,
        buffer: Optional[MetricsBuffer] = None,
        notifier: Optional[Notifier] = None,
        history_size: int = 30,
        max_alerts: int = 100,
        persistence_enabled: bool = True,
    ):
        self.settings = settings
        self.buffer = buffer
        self.notifier = notifier or NullNotifier()
        self.history = HistoryWindow(history_size)
        self.max_alerts = max_alerts

        self.metrics: Optional[MetricsSnapshot] = None
        self.alerts: List[Alert] = self._load_alerts()
        self.alert_thresholds: AlertThresholds = self._load_thresholds()
        self.alerts_enabled: bool = bool(settings.get(ALERTS_ENABLED_KEY, True))
        self.persistence_enabled = persistence_enabled
        self.connected = False
        self.last_update: Optional[datetime] = None
        self.error: Optional[str] = None
        # Pluggable extra input for the disk category, outside the snapshot.
        self.disk_usage: Optional[float] = None

        self._lock = threading.Lock()
        self._pending: Set[asyncio.Task] = set()

        self._request_permission_if_undecided()

    def _load_alerts(self) -> List[Alert]:
        alerts = []
        for data in self.settings.get(ALERTS_KEY, []) or []:
            try:
                alerts.append(Alert.from_dict(data))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Dropping malformed stored alert: {e}")
        return alerts[-self.max_alerts:]

    def _load_thresholds(self) -> AlertThresholds:
        data = self.settings.get(THRESHOLDS_KEY)
        if not data:
            return DEFAULT_THRESHOLDS
        try:
            return AlertThresholds.from_dict(data, fallback=DEFAULT_THRESHOLDS)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Stored alert thresholds are malformed, using defaults: {e}")
            return DEFAULT_THRESHOLDS

    def _save_alerts(self) -> None:
        self.settings.set(ALERTS_KEY, [alert.to_dict() for alert in self.alerts])

    def _request_permission_if_undecided(self) -> None:
        if self.notifier.permission is NotificationPermission.DEFAULT:
            self.notifier.request_permission()

    def _notify(self, alert: Alert) -> None:
        if alert.severity is not AlertSeverity.CRITICAL:
            return
        if self.notifier.permission is not NotificationPermission.GRANTED:
            return
        self.notifier.notify(NOTIFICATION_TITLE, alert.message, alert.type.value)

    def active_alerts(self) -> List[Alert]:
        with self._lock:
            return [alert for alert in self.alerts if alert.active]

    def ingest(self, message: Union[MetricsMessage, MetricsSnapshot]) -> List[Alert]:
        """
        Fold one pushed message into the store.

        Returns:
            The alerts newly created by this message
        """
        snapshot = message.data if isinstance(message, MetricsMessage) else message

        self.history.append(HistorySample.from_snapshot(snapshot))
        self.metrics = snapshot
        self.last_update = utc_now()
        self.error = None

        created: List[Alert] = []
        if self.alerts_enabled:
            events = evaluate_alerts(snapshot, self.alert_thresholds, disk_usage=self.disk_usage)
            created = self._insert_alerts([Alert.from_event(event) for event in events])

        if self.persistence_enabled and self.buffer is not None and self.buffer.is_initialized:
            self._schedule_append(PersistedSample.from_snapshot(snapshot))

        return created

    def _insert_alerts(self, candidates: List[Alert]) -> List[Alert]:
        with self._lock:
            active_types = {alert.type for alert in self.alerts if alert.active}
            created = []
            for alert in candidates:
                if alert.type in active_types:
                    logger.debug(f"Suppressed duplicate {alert.type.value} alert")
                    continue
                active_types.add(alert.type)
                created.append(alert)
            if created:
                self.alerts = (self.alerts + created)[-self.max_alerts:]
                self._save_alerts()

        for alert in created:
            logger.info(f"New {alert.severity.value} alert: {alert.message}")
            self._notify(alert)
        return created

    def _schedule_append(self, sample: PersistedSample) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, durable append skipped")
            return
        task = loop.create_task(self.buffer.append(sample))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    def add_alert(self, alert: Alert) -> bool:
        """Insert an externally built alert under the same de-duplication rule."""
        return bool(self._insert_alerts([alert]))

    def dismiss_alert(self, alert_id: str) -> bool:
        with self._lock:
            found = False
            for alert in self.alerts:
                if alert.id == alert_id:
                    alert.dismissed = True
                    found = True
            if found:
                self._save_alerts()
        if not found:
            logger.debug(f"No alert with id {alert_id} to dismiss")
        return found

    def clear_alerts(self) -> None:
        with self._lock:
            self.alerts = []
            self._save_alerts()

    def set_alert_thresholds(self, thresholds: AlertThresholds) -> None:
        self.alert_thresholds = thresholds
        self.settings.set(THRESHOLDS_KEY, thresholds.to_dict())

    def set_alerts_enabled(self, enabled: bool) -> None:
        self.alerts_enabled = enabled
        self.settings.set(ALERTS_ENABLED_KEY, enabled)
        if enabled:
            self._request_permission_if_undecided()

    def set_connected(self, connected: bool) -> None:
        self.connected = connected

    def set_error(self, error: Optional[str]) -> None:
        self.error = error

    async def init_persistence(self) -> bool:
        """
        Initialise the durable buffer and start its eviction task.

        Returns:
            True when persistence is active; on failure persistence is
            switched off and alerting continues unaffected
        """
        if self.buffer is None:
            logger.warning("No durable buffer configured, metrics persistence disabled")
            self.persistence_enabled = False
            return False
        if self.buffer.is_initialized:
            return True
        if not await self.buffer.initialize():
            self.persistence_enabled = False
            return False
        self.buffer.start_cleanup()
        return True

    async def set_persistence_enabled(self, enabled: bool) -> None:
        self.persistence_enabled = enabled
        if enabled and (self.buffer is None or not self.buffer.is_initialized):
            await self.init_persistence()

    async def drain(self) -> None:
        """Wait for every scheduled durable append and notification to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
        await self.notifier.drain()

    async def close(self) -> None:
        await self.drain()
        if self.buffer is not None:
            await self.buffer.close()

    def state(self) -> Dict[str, Any]:
        """Summary of the store for display and logging."""
        return {
            "connected": self.connected,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "error": self.error,
            "history_size": len(self.history),
            "alerts": len(self.alerts),
            "active_alerts": len(self.active_alerts()),
            "alerts_enabled": self.alerts_enabled,
            "persistence_enabled": self.persistence_enabled,
        }
