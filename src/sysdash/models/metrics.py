"""
Metrics snapshot data models.

A MetricsSnapshot is captured fresh on every broadcast tick and never mutated
afterwards. The to_dict/from_dict pairs define the wire format pushed to
subscribers inside a ``{"type": "metrics", ...}`` message.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from .alerts import AlertEvent

BRAIN_MODES = ("code", "vision")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC string with millisecond precision."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 string (``Z`` suffix accepted) into an aware datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


@dataclass(frozen=True)
class CpuMetrics:
    usage: float
    temperature: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"usage": self.usage, "temperature": self.temperature}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CpuMetrics":
        return cls(
            usage=float(data.get("usage", 0.0)),
            temperature=_optional_float(data.get("temperature")),
        )


@dataclass(frozen=True)
class MemoryMetrics:
    used: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {"used": self.used, "percentage": self.percentage}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemoryMetrics":
        return cls(
            used=int(data.get("used", 0)),
            percentage=float(data.get("percentage", 0.0)),
        )


@dataclass(frozen=True)
class GpuMetrics:
    utilization: float
    memory_used: Optional[int] = None
    temperature: Optional[float] = None
    power_draw: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "utilization": self.utilization,
            "memory_used": self.memory_used,
            "temperature": self.temperature,
            "power_draw": self.power_draw,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GpuMetrics":
        return cls(
            utilization=float(data.get("utilization", 0.0)),
            memory_used=_optional_int(data.get("memory_used")),
            temperature=_optional_float(data.get("temperature")),
            power_draw=float(data.get("power_draw") or 0.0),
        )


@dataclass(frozen=True)
class BrainStatus:
    # One of BRAIN_MODES; unknown modes reported by the host are passed through.
    active: str = "code"

    def to_dict(self) -> Dict[str, Any]:
        return {"active": self.active}


@dataclass(frozen=True)
class OllamaStatus:
    models_loaded: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"models_loaded": list(self.models_loaded)}


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    One capture of host telemetry.

    ``gpu`` is None when no GPU is present or nvidia-smi is unavailable.
    """

    timestamp: datetime
    cpu: CpuMetrics
    memory: MemoryMetrics
    gpu: Optional[GpuMetrics] = None
    brain: BrainStatus = field(default_factory=BrainStatus)
    ollama: OllamaStatus = field(default_factory=OllamaStatus)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": format_timestamp(self.timestamp),
            "cpu": self.cpu.to_dict(),
            "memory": self.memory.to_dict(),
            "gpu": self.gpu.to_dict() if self.gpu is not None else None,
            "brain": self.brain.to_dict(),
            "ollama": self.ollama.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MetricsSnapshot":
        gpu_data = data.get("gpu")
        brain_data = data.get("brain") or {}
        ollama_data = data.get("ollama") or {}
        raw_timestamp = data.get("timestamp")
        return cls(
            timestamp=parse_timestamp(raw_timestamp) if raw_timestamp else utc_now(),
            cpu=CpuMetrics.from_dict(data.get("cpu") or {}),
            memory=MemoryMetrics.from_dict(data.get("memory") or {}),
            gpu=GpuMetrics.from_dict(gpu_data) if gpu_data else None,
            brain=BrainStatus(active=str(brain_data.get("active", "code"))),
            ollama=OllamaStatus(
                models_loaded=[str(m) for m in ollama_data.get("models_loaded", [])]
            ),
        )


@dataclass(frozen=True)
class MetricsMessage:
    """The wire message pushed to every subscriber on each tick."""

    data: MetricsSnapshot
    alerts: List[AlertEvent] = field(default_factory=list)

    TYPE = "metrics"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.TYPE,
            "data": self.data.to_dict(),
            "alerts": [alert.to_dict() for alert in self.alerts],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "MetricsMessage":
        if payload.get("type") != cls.TYPE:
            raise ValueError(f"Unsupported message type: {payload.get('type')!r}")
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValueError("Metrics message is missing its data object")
        return cls(
            data=MetricsSnapshot.from_dict(data),
            alerts=[AlertEvent.from_dict(a) for a in payload.get("alerts") or []],
        )


def parse_message(text: str) -> MetricsMessage:
    """
    Decode a raw text frame received from the stream.

    Raises:
        ValueError: If the frame is not valid JSON or not a metrics message
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON frame: {e}") from e
    if not isinstance(payload, dict):
        raise ValueError("Message frame must be a JSON object")
    try:
        return MetricsMessage.from_dict(payload)
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed metrics message: {type(e).__name__}: {e}") from e
