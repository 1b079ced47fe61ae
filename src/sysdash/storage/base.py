"""
Abstract base class for durable sample storage implementations.

This module defines the SampleStorage abstract base class which serves as the
interface for every backend of the durable time-series buffer. Records are
keyed by an auto-incrementing id and ordered by timestamp; all range and
eviction operations walk that timestamp order.

Implementations are synchronous and not required to be thread-safe: the
MetricsBuffer calls them from a single worker thread.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from ..models.history import BufferStats, PersistedSample


class SampleStorage(ABC):
    """Abstract base class for durable sample storage."""

    @abstractmethod
    def open(self) -> None:
        """
        Open the backend, loading any previously persisted records.

        Raises:
            Exception: If the backend cannot be used in this environment
        """

    @abstractmethod
    def append(self, sample: PersistedSample) -> int:
        """
        Add one record. Never overwrites an existing record.

        Returns:
            The id assigned to the new record
        """

    @abstractmethod
    def query_range(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[PersistedSample]:
        """
        Records with ``since <= timestamp <= until`` in chronological order.

        A None bound is open.
        """

    @abstractmethod
    def latest(self, n: int) -> List[PersistedSample]:
        """The ``n`` most recent records, in chronological order."""

    @abstractmethod
    def count(self) -> int:
        pass

    @abstractmethod
    def delete_before(self, cutoff: datetime) -> int:
        """
        Delete records with timestamp at or before ``cutoff``.

        Returns:
            Number of records deleted
        """

    @abstractmethod
    def delete_oldest(self, n: int) -> int:
        """
        Delete the ``n`` oldest records by timestamp.

        Returns:
            Number of records deleted
        """

    @abstractmethod
    def stats(self) -> BufferStats:
        """Count, oldest/newest timestamps and averages over all records."""

    @abstractmethod
    def clear(self) -> None:
        pass

    def close(self) -> None:
        """Release the backend. Further calls are undefined until reopened."""
