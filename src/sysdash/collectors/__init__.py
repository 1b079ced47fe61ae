"""
Metric sources feeding the broadcast loop.
"""

from .base import MetricSource
from .system_source import SystemMetricSource, parse_nvidia_smi_output, parse_nvidia_value

__all__ = [
    "MetricSource",
    "SystemMetricSource",
    "parse_nvidia_smi_output",
    "parse_nvidia_value",
]
