"""
sysdash: real-time system monitoring dashboard.

This package samples host telemetry on a fixed interval, evaluates it against
alert thresholds and pushes the result to every connected viewer, and
provides the client store that folds the stream into bounded history.

The package is organized into specialized modules:
- config: Configuration management and validation
- models: Data structures and type definitions
- validation: Input validation and error handling
- alerts: Threshold store and alert evaluation
- collectors: Metric sources
- monitoring: Subscriber registry and broadcast loop
- server: FastAPI application
- storage: Durable time-series buffer, export and settings persistence
- client: Ingest store and stream connection
- cli: Command-line interface

Usage:
    From command line:
        sysdash serve
        sysdash watch
        sysdash export --format csv

    Programmatically:
        from sysdash import create_app, get_config
        app = create_app(get_config())
"""

__version__ = "1.0.0"

# Main interfaces
from .config import get_config, clear_config_cache, set_config_path

# Model classes for external use
from .models import (
    Alert,
    AlertEvent,
    AlertThresholds,
    AppConfig,
    MetricsMessage,
    MetricsSnapshot,
    PersistedSample,
)

# Validation utilities
from .validation import ValidationError

from .alerts import ThresholdStore, evaluate_alerts
from .monitoring import BroadcastLoop, SubscriberRegistry
from .server import create_app
from .client import DashboardStore, MetricsStreamClient
from .storage import MetricsBuffer

__all__ = [
    "__version__",
    # Main interfaces
    "get_config",
    "clear_config_cache",
    "set_config_path",
    "create_app",
    # Models
    "Alert",
    "AlertEvent",
    "AlertThresholds",
    "AppConfig",
    "MetricsMessage",
    "MetricsSnapshot",
    "PersistedSample",
    # Validation
    "ValidationError",
    # Pipeline components
    "ThresholdStore",
    "evaluate_alerts",
    "BroadcastLoop",
    "SubscriberRegistry",
    "DashboardStore",
    "MetricsStreamClient",
    "MetricsBuffer",
]
