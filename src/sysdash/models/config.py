"""
Configuration data models.

This module contains the configuration structures for the server, alerting,
the default metric source and the client, aggregated into AppConfig.
"""

from dataclasses import dataclass, field
from pathlib import Path

from ..config.storage_config import StorageConfig
from .alerts import DEFAULT_THRESHOLDS, AlertThresholds


@dataclass
class ServerConfig:
    """
    Settings of the broadcasting server, from the ``[server]`` table.
    """

    host: str = "0.0.0.0"
    port: int = 9000
    # Delay between the end of one tick and the start of the next.
    update_interval_seconds: float = 2.0


@dataclass
class AlertsConfig:
    """
    Server-side alerting, from the ``[alerts]`` table.
    """

    enabled: bool = True
    thresholds: AlertThresholds = DEFAULT_THRESHOLDS


@dataclass
class SourcesConfig:
    """
    Settings of the default host metric source, from the ``[sources]`` table.
    """

    ollama_url: str = "http://localhost:11434"
    brain_status_file: Path = Path("/gx10/runtime/active_brain.json")
    command_timeout_seconds: float = 5.0


@dataclass
class ClientConfig:
    """
    Settings of the streaming client, from the ``[client]`` table.
    """

    server_url: str = "ws://localhost:9000/ws"
    reconnect_delay_seconds: float = 3.0
    # Samples kept for charting (5 minutes at a 10 second interval).
    history_size: int = 30
    max_alerts: int = 100
    data_dir: Path = Path("data")


@dataclass
class AppConfig:
    """
    The root configuration object that aggregates all loaded settings.
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    alerts: AlertsConfig = field(default_factory=AlertsConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    client: ClientConfig = field(default_factory=ClientConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
