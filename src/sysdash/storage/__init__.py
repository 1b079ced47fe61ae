"""
Storage module for the client's durable data.

This module provides:
- The durable time-series buffer (MetricsBuffer) over pluggable sample
  storage backends: Polars/Parquet on disk, or process-local memory
- JSON and CSV export of persisted samples
- Key/value settings persistence for alerts and thresholds
"""

from .base import SampleStorage
from .export import CSV_HEADER, export_csv, export_json
from .factory import create_storage
from .memory_storage import MemorySampleStorage
from .parquet_storage import ParquetSampleStorage
from .settings import JsonSettingsStore, MemorySettingsStore, SettingsStore
from .timeseries import MetricsBuffer

__all__ = [
    "CSV_HEADER",
    "JsonSettingsStore",
    "MemorySampleStorage",
    "MemorySettingsStore",
    "MetricsBuffer",
    "ParquetSampleStorage",
    "SampleStorage",
    "SettingsStore",
    "create_storage",
    "export_csv",
    "export_json",
]
