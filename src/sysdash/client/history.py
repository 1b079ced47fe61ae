"""
Bounded in-memory window of recent samples for charting.
"""

import threading
from collections import deque
from typing import Deque, List

from ..models.history import HistorySample


class HistoryWindow:
    """
    Fixed-capacity FIFO of HistorySample.

    Appending at capacity drops the oldest sample first. The window is never
    persisted and starts empty on every process start.
    """

    def __init__(self, capacity: int = 30):
        if capacity < 1:
            raise ValueError(f"History capacity must be >= 1, got {capacity}")
        self._samples: Deque[HistorySample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    def append(self, sample: HistorySample) -> None:
        with self._lock:
            self._samples.append(sample)

    def samples(self) -> List[HistorySample]:
        """Contents in append order, oldest first."""
        with self._lock:
            return list(self._samples)

    def latest(self) -> HistorySample:
        with self._lock:
            if not self._samples:
                raise IndexError("History window is empty")
            return self._samples[-1]

    def clear(self) -> None:
        with self._lock:
            self._samples.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)
