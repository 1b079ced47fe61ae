"""
Threshold evaluation of a metrics snapshot.

Each category is checked independently: critical strictly before warning, so
a value that meets both thresholds yields only the critical event, and no
category produces more than one event per call.
"""

from datetime import datetime
from typing import Iterable, List, Optional

from ..models.alerts import (
    AlertEvent,
    AlertSeverity,
    AlertThresholds,
    AlertType,
    ThresholdPair,
)
from ..models.metrics import MetricsSnapshot, utc_now

_LABELS = {
    AlertType.CPU: "CPU usage",
    AlertType.GPU_TEMP: "GPU temperature",
    AlertType.MEMORY: "Memory usage",
    AlertType.DISK: "Disk usage",
}


def format_observed(alert_type: AlertType, value: float) -> str:
    """Percentages to one decimal place, temperature as whole degrees."""
    if alert_type is AlertType.GPU_TEMP:
        return f"{value:.0f}°C"
    return f"{value:.1f}%"


def check_threshold(
    alert_type: AlertType,
    value: float,
    pair: ThresholdPair,
    timestamp: datetime,
) -> Optional[AlertEvent]:
    if value >= pair.critical:
        severity, threshold = AlertSeverity.CRITICAL, pair.critical
    elif value >= pair.warning:
        severity, threshold = AlertSeverity.WARNING, pair.warning
    else:
        return None

    return AlertEvent(
        type=alert_type,
        severity=severity,
        message=f"{_LABELS[alert_type]} ({format_observed(alert_type, value)}) exceeds {severity.value} threshold",
        value=value,
        threshold=threshold,
        timestamp=timestamp,
    )


def evaluate_alerts(
    snapshot: MetricsSnapshot,
    thresholds: AlertThresholds,
    disk_usage: Optional[float] = None,
    now: Optional[datetime] = None,
) -> List[AlertEvent]:
    """
    Map a snapshot and thresholds to zero or more alert events.

    Events come out in the fixed order cpu, gpu_temp, memory, disk. The GPU
    category is skipped when the snapshot carries no GPU or no GPU
    temperature; disk is only evaluated when ``disk_usage`` is supplied.

    Args:
        snapshot: The captured metrics
        thresholds: Thresholds to evaluate against
        disk_usage: Optional disk usage percentage from a separate reader
        now: Timestamp stamped on the events; defaults to the current time

    Returns:
        The alert events for this evaluation, possibly empty
    """
    timestamp = now or utc_now()
    observed = [
        (AlertType.CPU, snapshot.cpu.usage),
        (AlertType.GPU_TEMP, snapshot.gpu.temperature if snapshot.gpu is not None else None),
        (AlertType.MEMORY, snapshot.memory.percentage),
        (AlertType.DISK, disk_usage),
    ]

    events = []
    for alert_type, value in observed:
        if value is None:
            continue
        event = check_threshold(alert_type, value, thresholds.for_type(alert_type), timestamp)
        if event is not None:
            events.append(event)
    return events


def max_disk_usage(percentages: Iterable[Optional[float]]) -> Optional[float]:
    """Reduce per-disk usage percentages to the single value the disk category uses."""
    values = [p for p in percentages if p is not None]
    return max(values) if values else None
