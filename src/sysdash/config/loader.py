"""
Configuration file loading utilities.

This module handles the low-level loading and parsing of the TOML
configuration file and the environment variables that override it at startup.
"""

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..validation import ErrorSeverity, ValidationError, handle_config_error

logger = logging.getLogger(__name__)

# Environment variable -> (category, level) for threshold overrides.
THRESHOLD_ENV_VARS = {
    "CPU_WARNING": ("cpu", "warning"),
    "CPU_CRITICAL": ("cpu", "critical"),
    "GPU_TEMP_WARNING": ("gpu_temp", "warning"),
    "GPU_TEMP_CRITICAL": ("gpu_temp", "critical"),
    "MEMORY_WARNING": ("memory", "warning"),
    "MEMORY_CRITICAL": ("memory", "critical"),
    "DISK_WARNING": ("disk", "warning"),
    "DISK_CRITICAL": ("disk", "critical"),
}


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Parse ``file_path`` as TOML.

    Raises:
        FileNotFoundError: If the file is absent
        tomllib.TOMLDecodeError: If it is not valid TOML; logged as critical first
    """
    if not file_path.is_file():
        raise FileNotFoundError(f"{description} not found: {file_path}")

    logger.info(f"Reading {description} {file_path}")
    try:
        return tomllib.loads(file_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"{file_path.name} is not valid TOML",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger,
        )
        raise


def load_main_config(config_path: Path) -> Dict[str, Any]:
    """
    Read conf/config.toml or its override.

    A missing file is not an error: the built-in defaults apply.
    """
    if not config_path.exists():
        logger.warning(f"Configuration file {config_path} not found, using built-in defaults")
        return {}
    return load_toml_file(config_path, "main configuration file")


def _parse_env_number(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise ValidationError(
            f"Environment variable {name} must be numeric, got {raw!r}",
            field_name=name,
            value=raw,
        ) from e


def _parse_env_bool(name: str, raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValidationError(
        f"Environment variable {name} must be a boolean, got {raw!r}",
        field_name=name,
        value=raw,
    )


def apply_env_overrides(
    config_data: Dict[str, Any], environ: Optional[Mapping[str, str]] = None
) -> Dict[str, Any]:
    """
    Overlay startup environment variables onto raw configuration data.

    ``UPDATE_INTERVAL`` is given in milliseconds; ``ALERTS_ENABLED`` is only
    false for an explicit false-like value. The input dict is not modified.

    Raises:
        ValidationError: If a variable cannot be parsed
    """
    env = os.environ if environ is None else environ
    data = {section: dict(values) if isinstance(values, Mapping) else values
            for section, values in config_data.items()}

    server = data.setdefault("server", {})
    if env.get("PORT"):
        server["port"] = int(_parse_env_number("PORT", env["PORT"]))
    if env.get("UPDATE_INTERVAL"):
        server["update_interval_seconds"] = _parse_env_number("UPDATE_INTERVAL", env["UPDATE_INTERVAL"]) / 1000.0

    alerts = data.setdefault("alerts", {})
    if env.get("ALERTS_ENABLED"):
        alerts["enabled"] = _parse_env_bool("ALERTS_ENABLED", env["ALERTS_ENABLED"])

    thresholds = {
        name: dict(values) if isinstance(values, Mapping) else values
        for name, values in alerts.get("thresholds", {}).items()
    }
    for var, (category, level) in THRESHOLD_ENV_VARS.items():
        if env.get(var):
            thresholds.setdefault(category, {})[level] = _parse_env_number(var, env[var])
    if thresholds:
        alerts["thresholds"] = thresholds

    overridden = [var for var in ("PORT", "UPDATE_INTERVAL", "ALERTS_ENABLED", *THRESHOLD_ENV_VARS) if env.get(var)]
    if overridden:
        logger.info(f"Applied environment overrides: {', '.join(overridden)}")
    return data
