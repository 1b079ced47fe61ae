"""
Defines the interface every metric source implements.

The broadcast loop only talks to a MetricSource; the default implementation
reads the local host, tests substitute a fake.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..models.metrics import MetricsSnapshot


class MetricSource(ABC):
    """
    Abstract base class for metric sources.

    Implementations must not raise for an unavailable subsystem (no GPU, a
    missing tool, an unreachable API); the failing part of the snapshot is
    reported as None or its default instead.
    """

    @abstractmethod
    async def capture(self) -> MetricsSnapshot:
        """Capture one fresh snapshot of host telemetry."""

    async def disk_usage(self) -> Optional[float]:
        """
        Disk usage percentage fed to the ``disk`` alert category.

        Sources that cannot report disk usage return None, which leaves the
        category unevaluated.
        """
        return None

    async def close(self) -> None:
        """Release any resources held by the source."""
