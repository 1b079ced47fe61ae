"""
Process-local sample storage, lost on exit.
"""

import bisect
import logging
from datetime import datetime
from typing import List, Optional

from ..models.history import BufferStats, PersistedSample
from ..models.metrics import format_timestamp
from .base import SampleStorage

logger = logging.getLogger(__name__)


def _order_key(sample: PersistedSample):
    return (sample.timestamp, sample.id)


class MemorySampleStorage(SampleStorage):
    """In-memory SampleStorage with the same ordering and id semantics as the Parquet backend."""

    def __init__(self):
        self._records: List[PersistedSample] = []
        self._next_id = 1

    def open(self) -> None:
        logger.debug("Opened in-memory sample store")

    def append(self, sample: PersistedSample) -> int:
        record_id = self._next_id
        bisect.insort(self._records, sample.with_id(record_id), key=_order_key)
        self._next_id += 1
        return record_id

    def query_range(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[PersistedSample]:
        return [
            r for r in self._records
            if (since is None or r.timestamp >= since) and (until is None or r.timestamp <= until)
        ]

    def latest(self, n: int) -> List[PersistedSample]:
        if n <= 0:
            return []
        return self._records[-n:]

    def count(self) -> int:
        return len(self._records)

    def delete_before(self, cutoff: datetime) -> int:
        expired = 0
        for record in self._records:
            if record.timestamp > cutoff:
                break
            expired += 1
        del self._records[:expired]
        return expired

    def delete_oldest(self, n: int) -> int:
        n = min(max(n, 0), len(self._records))
        del self._records[:n]
        return n

    def stats(self) -> BufferStats:
        if not self._records:
            return BufferStats()
        count = len(self._records)
        gpu_values = [r.gpu for r in self._records if r.gpu is not None]
        return BufferStats(
            count=count,
            oldest=format_timestamp(self._records[0].timestamp),
            newest=format_timestamp(self._records[-1].timestamp),
            avg_cpu=sum(r.cpu for r in self._records) / count,
            avg_memory=sum(r.memory for r in self._records) / count,
            avg_gpu=sum(gpu_values) / len(gpu_values) if gpu_values else None,
        )

    def clear(self) -> None:
        self._records.clear()
