"""
Configuration validation utilities.

This module provides validation for each configuration table and for runtime
threshold updates coming through the route layer.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..models.alerts import (
    ALERT_TYPES,
    DEFAULT_THRESHOLDS,
    AlertThresholds,
    ThresholdPair,
)
from ..models.config import AlertsConfig, ClientConfig, ServerConfig, SourcesConfig
from ..validation import (
    ValidationError,
    validate_boolean,
    validate_non_empty_string,
    validate_percentage,
    validate_positive_float,
    validate_positive_integer,
)

logger = logging.getLogger(__name__)

# Lower bound on the broadcast interval; anything faster would turn the
# shell-out based collectors into a busy loop.
MIN_UPDATE_INTERVAL_SECONDS = 0.5


def validate_server_config(server_data: Dict[str, Any]) -> ServerConfig:
    """
    Validate and create a ServerConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    host = validate_non_empty_string(
        server_data.get("host", "0.0.0.0"), field_name="server.host"
    )
    port = validate_positive_integer(
        server_data.get("port", 9000),
        min_value=1,
        max_value=65535,
        field_name="server.port",
    )
    interval = validate_positive_float(
        server_data.get("update_interval_seconds", 2.0),
        min_value=MIN_UPDATE_INTERVAL_SECONDS,
        max_value=3600.0,
        field_name="server.update_interval_seconds",
    )
    return ServerConfig(host=host, port=port, update_interval_seconds=interval)


def validate_threshold_pair(
    data: Any, category: str, base: Optional[ThresholdPair] = None
) -> ThresholdPair:
    """
    Validate one category's thresholds, optionally merging onto ``base``.

    Fields missing from ``data`` are taken from ``base``; without a base both
    fields are required.

    Raises:
        ValidationError: If a field is non-numeric, out of [0, 100], or
            warning is not strictly below critical
    """
    if not isinstance(data, Mapping):
        raise ValidationError(
            f"{category} thresholds must be an object with warning and critical values",
            field_name=category,
            value=data,
        )

    unknown = set(data) - {"warning", "critical"}
    if unknown:
        raise ValidationError(
            f"{category} thresholds contain unknown fields: {sorted(unknown)}",
            field_name=category,
            value=data,
        )

    values = {}
    for level in ("warning", "critical"):
        if level in data:
            try:
                values[level] = validate_percentage(data[level], field_name=f"{category}.{level}")
            except ValidationError as e:
                raise ValidationError(
                    f"{category} thresholds must have numeric {level} values between 0 and 100: {e}",
                    field_name=category,
                    value=data,
                ) from e
        elif base is not None:
            values[level] = getattr(base, level)
        else:
            raise ValidationError(
                f"{category} thresholds must have numeric warning and critical values",
                field_name=category,
                value=data,
            )

    if values["warning"] >= values["critical"]:
        raise ValidationError(
            f"{category} warning threshold must be less than critical threshold",
            field_name=category,
            value=data,
        )
    return ThresholdPair(warning=values["warning"], critical=values["critical"])


def validate_threshold_update(
    updates: Any, current: AlertThresholds
) -> Dict[str, ThresholdPair]:
    """
    Validate a partial threshold update against the current values.

    Every provided category is checked after merging it field by field onto
    the current values, so a request that only moves ``warning`` is still
    checked against the existing ``critical``. Nothing is applied here; the
    caller passes the result to ThresholdStore.set only when every category
    passed.

    Returns:
        Mapping of category name to the merged, validated ThresholdPair

    Raises:
        ValidationError: Naming the first offending category and the reason
    """
    if not isinstance(updates, Mapping):
        raise ValidationError("Threshold update must be an object", value=updates)

    unknown = [name for name in updates if name not in ALERT_TYPES]
    if unknown:
        raise ValidationError(
            f"Unknown threshold categories: {unknown}; expected one of {list(ALERT_TYPES)}",
            field_name=unknown[0],
            value=updates,
        )

    validated = {}
    for category in ALERT_TYPES:
        if category in updates and updates[category] is not None:
            validated[category] = validate_threshold_pair(
                updates[category], category, base=getattr(current, category)
            )
    return validated


def validate_alerts_config(alerts_data: Dict[str, Any]) -> AlertsConfig:
    """
    Validate and create an AlertsConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    enabled = validate_boolean(alerts_data.get("enabled", True), field_name="alerts.enabled")

    thresholds_data = alerts_data.get("thresholds", {})
    if not isinstance(thresholds_data, Mapping):
        raise ValidationError("alerts.thresholds must be a table", field_name="alerts.thresholds")

    merged = validate_threshold_update(thresholds_data, DEFAULT_THRESHOLDS)
    thresholds = AlertThresholds.from_dict(
        {name: pair.to_dict() for name, pair in merged.items()},
        fallback=DEFAULT_THRESHOLDS,
    )
    return AlertsConfig(enabled=enabled, thresholds=thresholds)


def validate_sources_config(sources_data: Dict[str, Any]) -> SourcesConfig:
    """
    Validate and create a SourcesConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    ollama_url = validate_non_empty_string(
        sources_data.get("ollama_url", "http://localhost:11434"),
        field_name="sources.ollama_url",
    )
    brain_status_file = validate_non_empty_string(
        sources_data.get("brain_status_file", "/gx10/runtime/active_brain.json"),
        field_name="sources.brain_status_file",
    )
    command_timeout = validate_positive_float(
        sources_data.get("command_timeout_seconds", 5.0),
        min_value=0.1,
        max_value=120.0,
        field_name="sources.command_timeout_seconds",
    )
    return SourcesConfig(
        ollama_url=ollama_url.rstrip("/"),
        brain_status_file=Path(brain_status_file),
        command_timeout_seconds=command_timeout,
    )


def validate_client_config(client_data: Dict[str, Any]) -> ClientConfig:
    """
    Validate and create a ClientConfig from raw configuration data.

    Raises:
        ValidationError: If validation fails
    """
    server_url = validate_non_empty_string(
        client_data.get("server_url", "ws://localhost:9000/ws"),
        field_name="client.server_url",
    )
    if not server_url.startswith(("ws://", "wss://")):
        raise ValidationError(
            "client.server_url must be a ws:// or wss:// URL",
            field_name="client.server_url",
            value=server_url,
        )
    reconnect_delay = validate_positive_float(
        client_data.get("reconnect_delay_seconds", 3.0),
        min_value=0.1,
        max_value=600.0,
        field_name="client.reconnect_delay_seconds",
    )
    history_size = validate_positive_integer(
        client_data.get("history_size", 30),
        min_value=1,
        max_value=100_000,
        field_name="client.history_size",
    )
    max_alerts = validate_positive_integer(
        client_data.get("max_alerts", 100),
        min_value=1,
        max_value=100_000,
        field_name="client.max_alerts",
    )
    data_dir = validate_non_empty_string(
        client_data.get("data_dir", "data"), field_name="client.data_dir"
    )
    return ClientConfig(
        server_url=server_url,
        reconnect_delay_seconds=reconnect_delay,
        history_size=history_size,
        max_alerts=max_alerts,
        data_dir=Path(data_dir).expanduser(),
    )
