"""
Alert data models.

AlertThresholds is long-lived configuration, AlertEvent is produced by the
evaluator once per breach per tick, and Alert is the client-side record that
adds identity and a dismissed flag.
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class AlertType(str, Enum):
    """Threshold categories, in evaluation order."""

    CPU = "cpu"
    GPU_TEMP = "gpu_temp"
    MEMORY = "memory"
    DISK = "disk"


class AlertSeverity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


ALERT_TYPES = tuple(t.value for t in AlertType)


@dataclass(frozen=True)
class ThresholdPair:
    """Warning and critical levels for one category (warning < critical)."""

    warning: float
    critical: float

    def to_dict(self) -> Dict[str, float]:
        return {"warning": self.warning, "critical": self.critical}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ThresholdPair":
        return cls(warning=float(data["warning"]), critical=float(data["critical"]))


@dataclass(frozen=True)
class AlertThresholds:
    cpu: ThresholdPair
    gpu_temp: ThresholdPair
    memory: ThresholdPair
    disk: ThresholdPair

    def for_type(self, alert_type: AlertType) -> ThresholdPair:
        return getattr(self, AlertType(alert_type).value)

    def copy(self) -> "AlertThresholds":
        return replace(self)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {name: self.for_type(AlertType(name)).to_dict() for name in ALERT_TYPES}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], fallback: Optional["AlertThresholds"] = None) -> "AlertThresholds":
        """Build thresholds from a dict; categories missing from ``data`` come from ``fallback``."""
        values = {}
        for name in ALERT_TYPES:
            if name in data:
                values[name] = ThresholdPair.from_dict(data[name])
            elif fallback is not None:
                values[name] = fallback.for_type(AlertType(name))
            else:
                raise KeyError(f"Missing threshold category: {name}")
        return cls(**values)


DEFAULT_THRESHOLDS = AlertThresholds(
    cpu=ThresholdPair(warning=80.0, critical=90.0),
    gpu_temp=ThresholdPair(warning=75.0, critical=85.0),
    memory=ThresholdPair(warning=80.0, critical=90.0),
    disk=ThresholdPair(warning=85.0, critical=95.0),
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AlertEvent:
    """A single threshold breach observed in one tick."""

    type: AlertType
    severity: AlertSeverity
    message: str
    value: float
    threshold: float
    timestamp: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "value": self.value,
            "threshold": self.threshold,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AlertEvent":
        return cls(
            type=AlertType(data["type"]),
            severity=AlertSeverity(data["severity"]),
            message=str(data.get("message", "")),
            value=float(data["value"]),
            threshold=float(data["threshold"]),
        )


def generate_alert_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Alert:
    """
    Client-persisted alert derived from an AlertEvent.

    Only ``dismissed`` ever changes after creation.
    """

    id: str
    type: AlertType
    severity: AlertSeverity
    message: str
    value: float
    threshold: float
    timestamp: datetime
    dismissed: bool = False

    @classmethod
    def from_event(cls, event: AlertEvent, alert_id: Optional[str] = None) -> "Alert":
        return cls(
            id=alert_id or generate_alert_id(),
            type=event.type,
            severity=event.severity,
            message=event.message,
            value=event.value,
            threshold=event.threshold,
            timestamp=event.timestamp,
        )

    @property
    def active(self) -> bool:
        return not self.dismissed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "severity": self.severity.value,
            "message": self.message,
            "value": self.value,
            "threshold": self.threshold,
            "timestamp": self.timestamp.isoformat(),
            "dismissed": self.dismissed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Alert":
        return cls(
            id=str(data["id"]),
            type=AlertType(data["type"]),
            severity=AlertSeverity(data["severity"]),
            message=str(data.get("message", "")),
            value=float(data["value"]),
            threshold=float(data["threshold"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            dismissed=bool(data.get("dismissed", False)),
        )
