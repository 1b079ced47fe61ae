"""
Parquet sample storage implementation using Polars.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional

import polars as pl

from ..models.history import BufferStats, PersistedSample
from ..models.metrics import format_timestamp
from .base import SampleStorage

logger = logging.getLogger(__name__)

SAMPLE_SCHEMA = {
    "id": pl.Int64,
    "timestamp": pl.Datetime("us", "UTC"),
    "cpu": pl.Float64,
    "memory": pl.Float64,
    "gpu": pl.Float64,
    "gpu_temp": pl.Float64,
    "gpu_memory": pl.Float64,
}


def _row_to_sample(row: Dict[str, Any]) -> PersistedSample:
    return PersistedSample(
        id=row["id"],
        timestamp=row["timestamp"],
        cpu=row["cpu"],
        memory=row["memory"],
        gpu=row["gpu"],
        gpu_temp=row["gpu_temp"],
        gpu_memory=row["gpu_memory"],
    )


class ParquetSampleStorage(SampleStorage):
    """
    Durable sample storage backed by a Polars DataFrame and a Parquet file.

    The frame is kept sorted by (timestamp, id), which stands in for a
    timestamp index: range queries and both eviction passes slice from the
    oldest end. Every mutation rewrites the file through a temporary file and
    ``os.replace``, so a crash mid-write leaves the previous file intact.
    """

    def __init__(
        self,
        path: Path,
        compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy",
    ):
        self.path = Path(path)
        self.compression = compression
        self._df: pl.DataFrame = pl.DataFrame(schema=SAMPLE_SCHEMA)
        self._next_id = 1
        logger.debug(f"Initialized ParquetSampleStorage at {self.path} with compression: {compression}")

    def open(self) -> None:
        """Load persisted samples. A missing file is created by the first write, not here."""
        if self.path.exists():
            df = pl.read_parquet(self.path)
            self._df = df.select(
                [pl.col(name).cast(dtype) for name, dtype in SAMPLE_SCHEMA.items()]
            ).sort(["timestamp", "id"])
            max_id = self._df["id"].max()
            self._next_id = int(max_id) + 1 if max_id is not None else 1
            logger.info(f"Loaded {self._df.height} persisted samples from {self.path}")
        else:
            self._df = pl.DataFrame(schema=SAMPLE_SCHEMA)
            self._next_id = 1
            logger.info(f"No sample store at {self.path} yet, starting empty")

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        self._df.write_parquet(tmp_path, compression=self.compression)
        os.replace(tmp_path, self.path)

    def _replace_frame(self, df: pl.DataFrame) -> None:
        previous = self._df
        self._df = df
        try:
            self._flush()
        except Exception:
            self._df = previous
            raise

    def append(self, sample: PersistedSample) -> int:
        record_id = self._next_id
        row = pl.DataFrame(
            {
                "id": [record_id],
                "timestamp": [sample.timestamp],
                "cpu": [sample.cpu],
                "memory": [sample.memory],
                "gpu": [sample.gpu],
                "gpu_temp": [sample.gpu_temp],
                "gpu_memory": [sample.gpu_memory],
            },
            schema=SAMPLE_SCHEMA,
        )
        out_of_order = self._df.height > 0 and sample.timestamp < self._df["timestamp"][-1]
        combined = pl.concat([self._df, row])
        if out_of_order:
            combined = combined.sort(["timestamp", "id"])
        self._replace_frame(combined)
        self._next_id += 1
        return record_id

    def _rows(self, df: pl.DataFrame) -> List[PersistedSample]:
        return [_row_to_sample(row) for row in df.iter_rows(named=True)]

    def query_range(
        self, since: Optional[datetime] = None, until: Optional[datetime] = None
    ) -> List[PersistedSample]:
        df = self._df
        if since is not None:
            df = df.filter(pl.col("timestamp") >= since)
        if until is not None:
            df = df.filter(pl.col("timestamp") <= until)
        return self._rows(df)

    def latest(self, n: int) -> List[PersistedSample]:
        if n <= 0:
            return []
        return self._rows(self._df.tail(n))

    def count(self) -> int:
        return self._df.height

    def delete_before(self, cutoff: datetime) -> int:
        # Sorted by timestamp, so the expired records are a prefix.
        expired = self._df.filter(pl.col("timestamp") <= cutoff).height
        if expired == 0:
            return 0
        self._replace_frame(self._df.slice(expired))
        return expired

    def delete_oldest(self, n: int) -> int:
        n = min(max(n, 0), self._df.height)
        if n == 0:
            return 0
        self._replace_frame(self._df.slice(n))
        return n

    def stats(self) -> BufferStats:
        if self._df.height == 0:
            return BufferStats()
        row = self._df.select(
            pl.len().alias("count"),
            pl.col("timestamp").min().alias("oldest"),
            pl.col("timestamp").max().alias("newest"),
            pl.col("cpu").mean().alias("avg_cpu"),
            pl.col("memory").mean().alias("avg_memory"),
            pl.col("gpu").mean().alias("avg_gpu"),
        ).row(0, named=True)
        return BufferStats(
            count=int(row["count"]),
            oldest=format_timestamp(row["oldest"]),
            newest=format_timestamp(row["newest"]),
            avg_cpu=float(row["avg_cpu"]),
            avg_memory=float(row["avg_memory"]),
            avg_gpu=float(row["avg_gpu"]) if row["avg_gpu"] is not None else None,
        )

    def clear(self) -> None:
        self._replace_frame(pl.DataFrame(schema=SAMPLE_SCHEMA))

    def close(self) -> None:
        logger.debug(f"Closed sample store at {self.path} ({self._df.height} records)")
        self._df = pl.DataFrame(schema=SAMPLE_SCHEMA)
