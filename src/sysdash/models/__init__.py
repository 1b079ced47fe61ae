"""
Data models and structures for the dashboard pipeline.

Metric Models:
- Per-tick host snapshots and the wire message that carries them

Alert Models:
- Threshold configuration, transient alert events and client-side alerts

History Models:
- In-memory chart samples, durable buffer records and buffer statistics

Configuration Models:
- Server, alerting, metric source and client settings
"""

# Metric models
from .metrics import (
    BRAIN_MODES,
    BrainStatus,
    CpuMetrics,
    GpuMetrics,
    MemoryMetrics,
    MetricsMessage,
    MetricsSnapshot,
    OllamaStatus,
    format_timestamp,
    parse_message,
    parse_timestamp,
    utc_now,
)

# Alert models
from .alerts import (
    ALERT_TYPES,
    DEFAULT_THRESHOLDS,
    Alert,
    AlertEvent,
    AlertSeverity,
    AlertThresholds,
    AlertType,
    ThresholdPair,
    generate_alert_id,
)

# History models
from .history import BufferStats, HistorySample, PersistedSample

# Configuration models
from .config import AlertsConfig, AppConfig, ClientConfig, ServerConfig, SourcesConfig

__all__ = [
    # Metrics
    "BRAIN_MODES",
    "BrainStatus",
    "CpuMetrics",
    "GpuMetrics",
    "MemoryMetrics",
    "MetricsMessage",
    "MetricsSnapshot",
    "OllamaStatus",
    "format_timestamp",
    "parse_message",
    "parse_timestamp",
    "utc_now",
    # Alerts
    "ALERT_TYPES",
    "DEFAULT_THRESHOLDS",
    "Alert",
    "AlertEvent",
    "AlertSeverity",
    "AlertThresholds",
    "AlertType",
    "ThresholdPair",
    "generate_alert_id",
    # History
    "BufferStats",
    "HistorySample",
    "PersistedSample",
    # Configuration
    "AlertsConfig",
    "AppConfig",
    "ClientConfig",
    "ServerConfig",
    "SourcesConfig",
]
