"""
Durable time-series buffer of persisted samples.

This module provides the asynchronous MetricsBuffer used by the client store.
Storage calls run on a single worker thread, which serialises appends,
queries and eviction passes without locking the event loop.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, TypeVar

from ..config.storage_config import StorageConfig
from ..models.history import BufferStats, PersistedSample
from ..models.metrics import utc_now
from ..validation import validate_enum_choice
from .base import SampleStorage
from .export import EXPORTERS
from .factory import create_storage

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MetricsBuffer:
    """
    Append-only store of historical samples with age and count retention.

    Every operation absorbs storage failures: it logs them and returns an
    empty, False or zero result. Callers must read such a result as
    "unknown", not as "no data".
    """

    def __init__(self, storage: Optional[SampleStorage] = None, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self.storage = storage if storage is not None else create_storage(self.config)
        self.retention = timedelta(hours=self.config.retention_hours)
        self.max_records = self.config.max_records
        self._executor: Optional[ThreadPoolExecutor] = None
        self._initialized = False
        self._cleanup_task: Optional[asyncio.Task] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the storage backend.

        Returns:
            True when the buffer is usable; False when the backend failed to
            open, in which case persistence stays disabled
        """
        if self._initialized:
            return True
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="MetricsBuffer")
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._executor, self.storage.open)
        except Exception as e:
            logger.warning(f"Durable buffer unavailable, persistence disabled: {type(e).__name__}: {e}")
            return False
        self._initialized = True
        logger.info(f"Durable buffer initialized ({type(self.storage).__name__})")
        return True

    async def _call(self, operation: str, func: Callable[..., T], *args: Any, default: T) -> T:
        if not self._initialized or self._executor is None:
            return default
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(self._executor, func, *args)
        except Exception as e:
            logger.warning(f"Durable buffer {operation} failed: {type(e).__name__}: {e}")
            return default

    async def append(self, sample: PersistedSample) -> bool:
        record_id = await self._call("append", self.storage.append, sample, default=None)
        return record_id is not None

    async def query_range(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[PersistedSample]:
        return await self._call("query", self.storage.query_range, since, until, default=[])

    async def latest(self, n: int) -> List[PersistedSample]:
        return await self._call("latest query", self.storage.latest, n, default=[])

    async def count(self) -> int:
        return await self._call("count", self.storage.count, default=0)

    async def stats(self) -> BufferStats:
        return await self._call("stats", self.storage.stats, default=BufferStats())

    async def clear_all(self) -> bool:
        def clear() -> bool:
            self.storage.clear()
            return True

        return await self._call("clear", clear, default=False)

    async def cleanup_old_records(self, now: Optional[datetime] = None) -> int:
        """
        Delete records older than the retention window.

        Returns:
            Number of records deleted
        """
        cutoff = (now or utc_now()) - self.retention
        deleted = await self._call("age eviction", self.storage.delete_before, cutoff, default=0)
        if deleted:
            logger.info(f"Evicted {deleted} samples older than {cutoff.isoformat()}")
        return deleted

    async def enforce_max_records(self) -> int:
        """
        Delete the oldest records beyond ``max_records``.

        Returns:
            Number of records deleted; 0 when already within the cap
        """
        def enforce() -> int:
            excess = self.storage.count() - self.max_records
            if excess <= 0:
                return 0
            return self.storage.delete_oldest(excess)

        deleted = await self._call("count eviction", enforce, default=0)
        if deleted:
            logger.info(f"Evicted {deleted} oldest samples to stay within {self.max_records} records")
        return deleted

    async def run_cleanup(self, now: Optional[datetime] = None) -> Dict[str, int]:
        """One pass of both eviction policies."""
        return {
            "expired": await self.cleanup_old_records(now),
            "over_capacity": await self.enforce_max_records(),
        }

    def start_cleanup(self) -> None:
        """Run both eviction passes now and then every ``cleanup_interval_seconds``."""
        if self._cleanup_task is not None and not self._cleanup_task.done():
            return
        self._cleanup_task = asyncio.create_task(self._cleanup_loop(), name="metrics-buffer-cleanup")

    async def _cleanup_loop(self) -> None:
        while True:
            await self.run_cleanup()
            await asyncio.sleep(self.config.cleanup_interval_seconds)

    async def stop_cleanup(self) -> None:
        task, self._cleanup_task = self._cleanup_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def export(
        self,
        format: str = "json",
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> str:
        """
        Serialise the records in ``[since, until]`` as JSON or CSV.

        Raises:
            ValidationError: If the format is not 'json' or 'csv'
        """
        format = validate_enum_choice(format, valid_choices=list(EXPORTERS), field_name="format")
        samples = await self.query_range(since, until)
        return EXPORTERS[format](samples)

    async def close(self) -> None:
        await self.stop_cleanup()
        if self._executor is None:
            return
        if self._initialized:
            loop = asyncio.get_running_loop()
            try:
                await loop.run_in_executor(self._executor, self.storage.close)
            except Exception as e:
                logger.warning(f"Error closing durable buffer: {e}")
        self._executor.shutdown(wait=True)
        self._executor = None
        self._initialized = False
        logger.debug("Durable buffer closed")
