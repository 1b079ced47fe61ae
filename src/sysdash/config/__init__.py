"""
Configuration management for the sysdash package.

This module provides a clean interface for loading, validating, and accessing
configuration data from the TOML file and startup environment, with singleton
pattern management.
"""

# Main configuration interface
from .manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    load_config,
    set_config_path,
)

# For advanced usage - direct access to loaders and validators
from .loader import apply_env_overrides, load_main_config, load_toml_file
from .storage_config import StorageConfig
from .validators import (
    MIN_UPDATE_INTERVAL_SECONDS,
    validate_alerts_config,
    validate_client_config,
    validate_server_config,
    validate_sources_config,
    validate_threshold_pair,
    validate_threshold_update,
)

__all__ = [
    # Main interface
    "get_config",
    "set_config_path",
    "clear_config_cache",
    "is_config_loaded",
    "get_config_info",
    "load_config",
    # Advanced interface
    "load_toml_file",
    "load_main_config",
    "apply_env_overrides",
    "StorageConfig",
    "MIN_UPDATE_INTERVAL_SECONDS",
    "validate_server_config",
    "validate_alerts_config",
    "validate_sources_config",
    "validate_client_config",
    "validate_threshold_pair",
    "validate_threshold_update",
]
