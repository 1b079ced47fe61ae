"""
Textual export of persisted samples.
"""

import json
from typing import Iterable, Optional

from ..models.history import PersistedSample
from ..models.metrics import format_timestamp

CSV_HEADER = ("timestamp", "cpu", "memory", "gpu", "gpuTemp", "gpuMemory")


def _fixed(value: Optional[float], places: int) -> str:
    return "" if value is None else f"{value:.{places}f}"


def export_json(samples: Iterable[PersistedSample]) -> str:
    """JSON array of every field of every sample, indented by two spaces."""
    return json.dumps([sample.to_dict() for sample in samples], indent=2)


def export_csv(samples: Iterable[PersistedSample]) -> str:
    """
    Flat table with the columns of CSV_HEADER.

    cpu, memory and gpu use two decimals, gpuTemp one, gpuMemory none;
    absent values are empty. Lines are joined by ``\\n`` with no trailing
    newline.
    """
    rows = [",".join(CSV_HEADER)]
    for sample in samples:
        rows.append(
            ",".join(
                (
                    format_timestamp(sample.timestamp),
                    _fixed(sample.cpu, 2),
                    _fixed(sample.memory, 2),
                    _fixed(sample.gpu, 2),
                    _fixed(sample.gpu_temp, 1),
                    _fixed(sample.gpu_memory, 0),
                )
            )
        )
    return "\n".join(rows)


EXPORTERS = {
    "json": export_json,
    "csv": export_csv,
}
