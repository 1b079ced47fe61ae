"""
History data models.

HistorySample feeds the bounded in-memory chart window; PersistedSample is the
record appended to the durable time-series buffer.
"""

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional

from .metrics import MetricsSnapshot, format_timestamp, parse_timestamp


@dataclass(frozen=True)
class HistorySample:
    timestamp: str
    cpu: float
    memory: float
    gpu: Optional[float]

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "HistorySample":
        return cls(
            timestamp=format_timestamp(snapshot.timestamp),
            cpu=snapshot.cpu.usage,
            memory=snapshot.memory.percentage,
            gpu=snapshot.gpu.utilization if snapshot.gpu is not None else None,
        )


@dataclass(frozen=True)
class PersistedSample:
    """
    One row of the durable buffer.

    ``id`` is assigned by the storage backend on append and is None before.
    """

    timestamp: datetime
    cpu: float
    memory: float
    gpu: Optional[float] = None
    gpu_temp: Optional[float] = None
    gpu_memory: Optional[float] = None
    id: Optional[int] = None

    @classmethod
    def from_snapshot(cls, snapshot: MetricsSnapshot) -> "PersistedSample":
        gpu = snapshot.gpu
        return cls(
            timestamp=snapshot.timestamp,
            cpu=snapshot.cpu.usage,
            memory=snapshot.memory.percentage,
            gpu=gpu.utilization if gpu is not None else None,
            gpu_temp=gpu.temperature if gpu is not None else None,
            gpu_memory=float(gpu.memory_used) if gpu is not None and gpu.memory_used is not None else None,
        )

    def with_id(self, record_id: int) -> "PersistedSample":
        return PersistedSample(**{**asdict(self), "id": record_id})

    def to_dict(self) -> Dict[str, Any]:
        """Export form: camelCase keys matching the CSV header."""
        return {
            "id": self.id,
            "timestamp": format_timestamp(self.timestamp),
            "cpu": self.cpu,
            "memory": self.memory,
            "gpu": self.gpu,
            "gpuTemp": self.gpu_temp,
            "gpuMemory": self.gpu_memory,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PersistedSample":
        timestamp = data["timestamp"]
        if isinstance(timestamp, str):
            timestamp = parse_timestamp(timestamp)
        return cls(
            id=data.get("id"),
            timestamp=timestamp,
            cpu=float(data["cpu"]),
            memory=float(data["memory"]),
            gpu=data.get("gpu"),
            gpu_temp=data.get("gpuTemp", data.get("gpu_temp")),
            gpu_memory=data.get("gpuMemory", data.get("gpu_memory")),
        )


@dataclass(frozen=True)
class BufferStats:
    """Summary of the durable buffer contents."""

    count: int = 0
    oldest: Optional[str] = None
    newest: Optional[str] = None
    avg_cpu: float = 0.0
    avg_memory: float = 0.0
    avg_gpu: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
