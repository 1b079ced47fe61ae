"""
Factory for creating storage instances.
"""

import logging

from ..config.storage_config import StorageConfig
from .base import SampleStorage
from .memory_storage import MemorySampleStorage
from .parquet_storage import ParquetSampleStorage

logger = logging.getLogger(__name__)


def create_storage(config: StorageConfig) -> SampleStorage:
    """
    Create a sample storage instance based on the configured format.

    Raises:
        ValueError: If an unsupported format type is specified
    """
    if config.format == "parquet":
        logger.debug(f"Creating ParquetSampleStorage at {config.path} with compression: {config.compression}")
        return ParquetSampleStorage(path=config.path, compression=config.compression)
    elif config.format == "memory":
        logger.debug("Creating MemorySampleStorage")
        return MemorySampleStorage()
    else:
        raise ValueError(f"Unsupported storage format: {config.format}")
