"""
Unit tests for configuration loading, environment overrides and the
configuration singleton.
"""

import pytest

from sysdash.config import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from sysdash.config.loader import apply_env_overrides, load_main_config, load_toml_file
from sysdash.models.alerts import DEFAULT_THRESHOLDS, ThresholdPair
from sysdash.validation import ValidationError


@pytest.mark.unit
class TestLoader:
    """Test cases for TOML loading."""

    def test_load_toml_file(self, config_file):
        data = load_toml_file(config_file)
        assert data["server"]["port"] == 9100

    def test_load_toml_file_missing(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            load_toml_file(temp_dir / "missing.toml")

    def test_load_main_config_missing_file_uses_defaults(self, temp_dir):
        assert load_main_config(temp_dir / "missing.toml") == {}

    def test_malformed_toml_raises(self, temp_dir):
        import tomllib

        path = temp_dir / "bad.toml"
        path.write_text("[server\nport = ", encoding="utf-8")
        with pytest.raises(tomllib.TOMLDecodeError):
            load_toml_file(path)


@pytest.mark.unit
class TestEnvOverrides:
    """Test cases for startup environment variables."""

    def test_no_env_returns_equal_copy(self, sample_config_data):
        result = apply_env_overrides(sample_config_data, environ={})
        assert result["server"] == sample_config_data["server"]

    def test_port_and_interval(self):
        result = apply_env_overrides({}, environ={"PORT": "8080", "UPDATE_INTERVAL": "10000"})

        assert result["server"]["port"] == 8080
        assert result["server"]["update_interval_seconds"] == 10.0

    def test_input_not_mutated(self, sample_config_data):
        apply_env_overrides(sample_config_data, environ={"PORT": "8080", "CPU_WARNING": "50"})

        assert sample_config_data["server"]["port"] == 9100
        assert sample_config_data["alerts"]["thresholds"]["cpu"]["warning"] == 70

    @pytest.mark.parametrize(
        "raw, expected",
        [("false", False), ("0", False), ("off", False), ("true", True), ("YES", True)],
    )
    def test_alerts_enabled(self, raw, expected):
        result = apply_env_overrides({}, environ={"ALERTS_ENABLED": raw})
        assert result["alerts"]["enabled"] is expected

    def test_alerts_enabled_garbage_rejected(self):
        with pytest.raises(ValidationError):
            apply_env_overrides({}, environ={"ALERTS_ENABLED": "maybe"})

    def test_threshold_overrides_merge_with_file(self, sample_config_data):
        result = apply_env_overrides(
            sample_config_data,
            environ={"CPU_CRITICAL": "95", "DISK_WARNING": "70"},
        )
        thresholds = result["alerts"]["thresholds"]

        assert thresholds["cpu"] == {"warning": 70, "critical": 95.0}
        assert thresholds["disk"] == {"warning": 70.0}

    def test_non_numeric_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            apply_env_overrides({}, environ={"GPU_TEMP_WARNING": "hot"})

        assert exc_info.value.field_name == "GPU_TEMP_WARNING"


@pytest.mark.unit
class TestConfigManager:
    """Test cases for the configuration singleton."""

    def test_get_config_from_file(self, config_file, clean_env):
        set_config_path(config_file)
        config = get_config()

        assert config.server.port == 9100
        assert config.alerts.thresholds.cpu == ThresholdPair(70.0, 85.0)
        assert config.client.history_size == 10
        assert config.storage.format == "memory"
        assert config.storage.max_records == 100

    def test_get_config_is_cached(self, config_file, clean_env):
        set_config_path(config_file)
        assert get_config() is get_config()
        assert is_config_loaded()

        clear_config_cache()
        assert not is_config_loaded()

    def test_missing_file_gives_defaults(self, temp_dir, clean_env):
        set_config_path(temp_dir / "absent.toml")
        config = get_config()

        assert config.server.port == 9000
        assert config.alerts.thresholds == DEFAULT_THRESHOLDS

    def test_env_overrides_applied(self, config_file, clean_env):
        clean_env.setenv("PORT", "9200")
        clean_env.setenv("UPDATE_INTERVAL", "5000")
        clean_env.setenv("ALERTS_ENABLED", "false")
        clean_env.setenv("MEMORY_WARNING", "60")
        set_config_path(config_file)

        config = get_config()

        assert config.server.port == 9200
        assert config.server.update_interval_seconds == 5.0
        assert config.alerts.enabled is False
        assert config.alerts.thresholds.memory == ThresholdPair(60.0, 90.0)

    def test_env_interval_below_minimum_rejected(self, config_file, clean_env):
        clean_env.setenv("UPDATE_INTERVAL", "100")
        set_config_path(config_file)

        with pytest.raises(ValidationError):
            get_config()

    def test_invalid_threshold_env_rejected(self, config_file, clean_env):
        clean_env.setenv("CPU_WARNING", "99")
        set_config_path(config_file)

        with pytest.raises(ValidationError):
            get_config()

    def test_config_info(self, config_file, clean_env):
        set_config_path(config_file)
        get_config()
        info = get_config_info()

        assert info["config_loaded"] is True
        assert info["config_file_exists"] is True
        assert info["update_interval_seconds"] == 1.0
