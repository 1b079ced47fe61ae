"""
Alert thresholds and evaluation.
"""

from .evaluator import check_threshold, evaluate_alerts, format_observed, max_disk_usage
from .thresholds import ThresholdStore

__all__ = [
    "ThresholdStore",
    "check_threshold",
    "evaluate_alerts",
    "format_observed",
    "max_disk_usage",
]
