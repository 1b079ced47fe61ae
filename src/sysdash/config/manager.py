"""
Process-wide dashboard configuration.

The server, the watch client and the export command all read one AppConfig,
built from conf/config.toml plus environment overrides and cached after the
first successful load.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import AppConfig
from ..validation import ErrorSeverity, handle_config_error
from .loader import apply_env_overrides, load_main_config
from .storage_config import StorageConfig
from .validators import (
    validate_alerts_config,
    validate_client_config,
    validate_server_config,
    validate_sources_config,
)

logger = logging.getLogger(__name__)

_CONFIG: Optional[AppConfig] = None

# Overridden by `sysdash --config` and by tests.
_CONFIG_FILE_PATH = Path(__file__).parent.parent.parent.parent / "conf" / "config.toml"


def set_config_path(config_path: Path) -> None:
    """Point get_config() at another TOML file and drop the cached config."""
    global _CONFIG_FILE_PATH, _CONFIG
    _CONFIG_FILE_PATH = config_path
    _CONFIG = None
    logger.info(f"Configuration path set to: {config_path}")


def clear_config_cache() -> None:
    global _CONFIG
    _CONFIG = None
    logger.debug("Configuration cache cleared")


def load_config(config_path: Path) -> AppConfig:
    """
    Load and validate the application configuration from a TOML file.

    Environment overrides are applied on top of the file contents before
    validation, so an out-of-range ``UPDATE_INTERVAL`` is rejected exactly like
    an out-of-range value in the file.

    Raises:
        ValidationError: If configuration validation fails
        tomllib.TOMLDecodeError: If the TOML file is malformed
    """
    try:
        raw = apply_env_overrides(load_main_config(config_path))

        app_config = AppConfig(
            server=validate_server_config(raw.get("server", {})),
            alerts=validate_alerts_config(raw.get("alerts", {})),
            sources=validate_sources_config(raw.get("sources", {})),
            client=validate_client_config(raw.get("client", {})),
            storage=StorageConfig.from_dict(raw.get("storage", {})),
        )

        logger.info(
            f"Loaded configuration: port={app_config.server.port}, "
            f"interval={app_config.server.update_interval_seconds}s, "
            f"alerts_enabled={app_config.alerts.enabled}"
        )
        return app_config

    except Exception as e:
        handle_config_error(
            error=e,
            context="processing configuration",
            severity=ErrorSeverity.CRITICAL,
            reraise=True,
            logger=logger,
        )
        raise


def get_config() -> AppConfig:
    """
    Get the global application configuration, loading it if necessary.

    Returns:
        The singleton AppConfig instance
    """
    global _CONFIG
    if _CONFIG is None:
        _CONFIG = load_config(_CONFIG_FILE_PATH)
    return _CONFIG


def is_config_loaded() -> bool:
    return _CONFIG is not None


def get_config_info() -> dict:
    """Summarize the loaded configuration for diagnostics."""
    return {
        "config_loaded": is_config_loaded(),
        "config_path": str(_CONFIG_FILE_PATH),
        "config_file_exists": _CONFIG_FILE_PATH.exists(),
        "alerts_enabled": _CONFIG.alerts.enabled if _CONFIG else None,
        "update_interval_seconds": _CONFIG.server.update_interval_seconds if _CONFIG else None,
    }
