"""
Storage configuration model and validation.

This module defines the StorageConfig dataclass which encapsulates the
settings of the durable time-series buffer: backend selection, file location,
and the two retention policies (age and record count).
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Literal

from ..validation import (
    validate_boolean,
    validate_enum_choice,
    validate_positive_float,
    validate_positive_integer,
)

# 24 hours at one sample every 2 seconds.
DEFAULT_MAX_RECORDS = 43200


@dataclass
class StorageConfig:
    """
    Configuration model for the durable metrics buffer.

    Attributes:
        format: Storage backend
            - 'parquet': polars DataFrame persisted to a Parquet file
            - 'memory': process-local only, lost on exit
        path: Location of the Parquet file (ignored for 'memory')
        compression: Parquet compression codec
        retention_hours: Records older than this are evicted by the age pass
        max_records: Hard cap enforced by the count pass
        cleanup_interval_seconds: Period of the eviction task
        persistence_enabled: Initial state of the client's persistence toggle
    """

    format: Literal["parquet", "memory"] = "parquet"
    path: Path = Path("data/metrics.parquet")
    compression: Literal["snappy", "gzip", "brotli", "lz4", "zstd"] = "snappy"
    retention_hours: float = 24.0
    max_records: int = DEFAULT_MAX_RECORDS
    cleanup_interval_seconds: float = 30 * 60.0
    persistence_enabled: bool = True

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "StorageConfig":
        """
        Create a StorageConfig instance from a dictionary.

        Raises:
            ValidationError: If invalid configuration values are provided
        """
        format_type = validate_enum_choice(
            config_dict.get("format", "parquet"),
            valid_choices=["parquet", "memory"],
            field_name="storage.format",
        )
        compression = validate_enum_choice(
            config_dict.get("compression", "snappy"),
            valid_choices=["snappy", "gzip", "brotli", "lz4", "zstd"],
            field_name="storage.compression",
        )
        retention_hours = validate_positive_float(
            config_dict.get("retention_hours", 24.0),
            min_value=0.01,
            max_value=24.0 * 365,
            field_name="storage.retention_hours",
        )
        max_records = validate_positive_integer(
            config_dict.get("max_records", DEFAULT_MAX_RECORDS),
            min_value=1,
            max_value=10_000_000,
            field_name="storage.max_records",
        )
        cleanup_interval = validate_positive_float(
            config_dict.get("cleanup_interval_seconds", 30 * 60.0),
            min_value=1.0,
            max_value=24 * 3600.0,
            field_name="storage.cleanup_interval_seconds",
        )
        persistence_enabled = validate_boolean(
            config_dict.get("persistence_enabled", True),
            field_name="storage.persistence_enabled",
        )

        return cls(
            format=format_type,
            path=Path(config_dict.get("path", "data/metrics.parquet")).expanduser(),
            compression=compression,
            retention_hours=retention_hours,
            max_records=max_records,
            cleanup_interval_seconds=cleanup_interval,
            persistence_enabled=persistence_enabled,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "format": self.format,
            "path": str(self.path),
            "compression": self.compression,
            "retention_hours": self.retention_hours,
            "max_records": self.max_records,
            "cleanup_interval_seconds": self.cleanup_interval_seconds,
            "persistence_enabled": self.persistence_enabled,
        }
