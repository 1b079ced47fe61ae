"""
Key/value persistence for the client's local configuration.

The client store keeps its alert list, thresholds and alerting toggle here so
they survive restarts.
"""

import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from ..validation import ErrorSeverity, handle_file_error

logger = logging.getLogger(__name__)


class SettingsStore(ABC):
    """Abstract key/value store of JSON-compatible values."""

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        pass


class MemorySettingsStore(SettingsStore):
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self.data: Dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value


class JsonSettingsStore(SettingsStore):
    """
    Settings persisted as one JSON document.

    Every ``set`` rewrites the document through a temporary file. Read and
    write failures are logged; a failed write leaves the in-memory value set.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._data: Dict[str, Any] = self._load()

    def _load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            handle_file_error(
                error=e,
                context=f"reading settings from {self.path}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed settings file {self.path}")
            return {}
        return data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError as e:
            handle_file_error(
                error=e,
                context=f"writing settings to {self.path}",
                severity=ErrorSeverity.WARNING,
                reraise=False,
                logger=logger,
            )
