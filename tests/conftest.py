"""
Pytest configuration and shared fixtures for the sysdash test suite.

This module provides common fixtures, fake collaborators (metric source,
subscriber, notifier) and snapshot builders for all test modules.
"""

import shutil
import sys
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import List, Optional

import pytest

# Add src to Python path for testing
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sysdash.client.notifications import NotificationPermission, Notifier  # noqa: E402
from sysdash.collectors.base import MetricSource  # noqa: E402
from sysdash.models.history import PersistedSample  # noqa: E402
from sysdash.models.metrics import (  # noqa: E402
    CpuMetrics,
    GpuMetrics,
    MemoryMetrics,
    MetricsSnapshot,
)

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


# ============================================================================
# Test Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers and settings."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# ============================================================================
# Builders
# ============================================================================


def make_snapshot(
    cpu: float = 10.0,
    memory: float = 20.0,
    gpu_util: Optional[float] = 30.0,
    gpu_temp: Optional[float] = 50.0,
    gpu_memory_bytes: Optional[int] = 1024 * 1024 * 1024,
    timestamp: Optional[datetime] = None,
    has_gpu: bool = True,
) -> MetricsSnapshot:
    """Build a snapshot with the given headline values."""
    gpu = None
    if has_gpu:
        gpu = GpuMetrics(
            utilization=gpu_util if gpu_util is not None else 0.0,
            memory_used=gpu_memory_bytes,
            temperature=gpu_temp,
            power_draw=120.5,
        )
    return MetricsSnapshot(
        timestamp=timestamp or BASE_TIME,
        cpu=CpuMetrics(usage=cpu),
        memory=MemoryMetrics(used=8 * 1024**3, percentage=memory),
        gpu=gpu,
    )


def make_sample(
    offset_seconds: float = 0.0,
    cpu: float = 10.0,
    memory: float = 20.0,
    gpu: Optional[float] = 30.0,
    gpu_temp: Optional[float] = 50.0,
    gpu_memory: Optional[float] = 1024.0,
) -> PersistedSample:
    """Build a persisted sample ``offset_seconds`` after BASE_TIME."""
    return PersistedSample(
        timestamp=BASE_TIME + timedelta(seconds=offset_seconds),
        cpu=cpu,
        memory=memory,
        gpu=gpu,
        gpu_temp=gpu_temp,
        gpu_memory=gpu_memory,
    )


# ============================================================================
# Fakes
# ============================================================================


class FakeMetricSource(MetricSource):
    """MetricSource returning canned snapshots and counting captures."""

    def __init__(self, snapshot: Optional[MetricsSnapshot] = None, disk: Optional[float] = None):
        self.snapshot = snapshot or make_snapshot()
        self.disk = disk
        self.captures = 0
        self.fail = False
        self.closed = False

    async def capture(self) -> MetricsSnapshot:
        self.captures += 1
        if self.fail:
            raise RuntimeError("source failure")
        return self.snapshot

    async def disk_usage(self) -> Optional[float]:
        return self.disk

    async def close(self) -> None:
        self.closed = True


class FakeSubscriber:
    """Subscriber that records every frame it receives."""

    def __init__(self, name: str = "fake", is_open: bool = True, fail: bool = False):
        self.name = name
        self.is_open = is_open
        self.fail = fail
        self.messages: List[str] = []
        self.closed = False

    async def send_text(self, message: str) -> None:
        if self.fail:
            raise ConnectionError("peer went away")
        self.messages.append(message)

    async def close(self) -> None:
        self.closed = True
        self.is_open = False

    def __repr__(self) -> str:
        return f"FakeSubscriber({self.name})"


class FakeNotifier(Notifier):
    """Notifier that records notifications instead of showing them."""

    def __init__(
        self,
        permission: NotificationPermission = NotificationPermission.GRANTED,
        grant_on_request: bool = True,
    ):
        super().__init__(permission)
        self.grant_on_request = grant_on_request
        self.requests = 0
        self.sent: List[tuple] = []

    def request_permission(self) -> NotificationPermission:
        self.requests += 1
        if self.permission is NotificationPermission.DEFAULT:
            self.permission = (
                NotificationPermission.GRANTED if self.grant_on_request else NotificationPermission.DENIED
            )
        return self.permission

    def notify(self, title: str, body: str, tag: str) -> None:
        self.sent.append((title, body, tag))


# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test files."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def fake_source():
    return FakeMetricSource()


@pytest.fixture
def fake_notifier():
    return FakeNotifier()


@pytest.fixture
def sample_config_data(temp_dir):
    """Sample configuration data for testing."""
    return {
        "server": {"host": "127.0.0.1", "port": 9100, "update_interval_seconds": 1.0},
        "alerts": {
            "enabled": True,
            "thresholds": {
                "cpu": {"warning": 70, "critical": 85},
                "memory": {"warning": 75, "critical": 90},
            },
        },
        "sources": {
            "ollama_url": "http://127.0.0.1:11434/",
            "brain_status_file": str(temp_dir / "active_brain.json"),
            "command_timeout_seconds": 2.0,
        },
        "client": {
            "server_url": "ws://127.0.0.1:9100/ws",
            "reconnect_delay_seconds": 1.5,
            "history_size": 10,
            "max_alerts": 50,
            "data_dir": str(temp_dir / "data"),
        },
        "storage": {
            "format": "memory",
            "path": str(temp_dir / "data" / "metrics.parquet"),
            "retention_hours": 1,
            "max_records": 100,
        },
    }


@pytest.fixture
def config_file(temp_dir, sample_config_data):
    """Write sample_config_data to a temporary config.toml."""
    import toml

    path = temp_dir / "config.toml"
    with open(path, "w") as f:
        toml.dump(sample_config_data, f)
    return path


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the loader reads."""
    from sysdash.config.loader import THRESHOLD_ENV_VARS

    for var in ("PORT", "UPDATE_INTERVAL", "ALERTS_ENABLED", *THRESHOLD_ENV_VARS):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


@pytest.fixture(autouse=True)
def clear_config_after_test():
    """Automatically clear configuration cache after each test."""
    original_config_path = Path(__file__).parent.parent / "conf" / "config.toml"

    yield  # Run the test

    from sysdash.config import clear_config_cache, set_config_path

    clear_config_cache()
    set_config_path(original_config_path)
