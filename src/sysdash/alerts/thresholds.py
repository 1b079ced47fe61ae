"""
In-memory holder of the server's current alert thresholds.
"""

import logging
import threading
from dataclasses import replace
from typing import Any, Mapping, Optional

from ..models.alerts import (
    ALERT_TYPES,
    DEFAULT_THRESHOLDS,
    AlertThresholds,
    ThresholdPair,
)

logger = logging.getLogger(__name__)


class ThresholdStore:
    """
    Thread-safe store for the four threshold categories.

    The store does not validate; callers run
    ``config.validators.validate_threshold_update`` first and only pass
    updates that passed as a whole.
    """

    def __init__(self, initial: Optional[AlertThresholds] = None):
        self._defaults = DEFAULT_THRESHOLDS
        self._current = initial if initial is not None else DEFAULT_THRESHOLDS
        self._lock = threading.Lock()

    def get(self) -> AlertThresholds:
        with self._lock:
            return self._current.copy()

    def defaults(self) -> AlertThresholds:
        return self._defaults.copy()

    def set(self, partial: Mapping[str, Any]) -> AlertThresholds:
        """
        Merge the provided categories into the current thresholds.

        Each value may be a ThresholdPair or a mapping with ``warning`` and/or
        ``critical``; a missing field keeps its current value.

        Returns:
            The full resulting threshold set
        """
        with self._lock:
            updated = {}
            for category in ALERT_TYPES:
                if category not in partial or partial[category] is None:
                    continue
                current_pair: ThresholdPair = getattr(self._current, category)
                value = partial[category]
                if isinstance(value, ThresholdPair):
                    updated[category] = value
                else:
                    updated[category] = ThresholdPair(
                        warning=float(value.get("warning", current_pair.warning)),
                        critical=float(value.get("critical", current_pair.critical)),
                    )
            self._current = replace(self._current, **updated)
            logger.info(f"Alert thresholds updated: {', '.join(updated) or 'no changes'}")
            return self._current.copy()

    def reset(self) -> AlertThresholds:
        with self._lock:
            self._current = self._defaults
            logger.info("Alert thresholds reset to defaults")
            return self._current.copy()
