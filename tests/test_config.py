"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from plant_autonomy.config import (
    CascadeTimings,
    ConfigLoader,
    ConfigLoadError,
    LogFormat,
    LogLevel,
    MonitoringConfig,
    RangeThreshold,
    load_config,
)

REPO_CONFIG = Path(__file__).resolve().parent.parent / "config"

MINIMAL_MONITORING = """
monitoring:
  check_interval_ms: 1000
  cooldown_seconds: 30
logging:
  format: json
  level: WARNING
"""


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("SITE_ID", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture
def config_dir(tmp_path) -> Path:
    (tmp_path / "monitoring.yaml").write_text(MINIMAL_MONITORING, encoding="utf-8")
    return tmp_path


class TestLoadConfig:
    def test_repository_config(self):
        config = load_config(REPO_CONFIG)

        assert config.monitoring.check_interval_ms == 5000
        assert config.monitoring.thresholds.temperature.max == 85.0
        assert config.monitoring.timings.escalation_seconds == 5.5
        assert config.logging.format == LogFormat.TEXT
        assert config.hierarchy["id"] == "site-1"

    def test_minimal_file_uses_defaults(self, config_dir):
        config = load_config(config_dir)

        assert config.monitoring.interval_seconds == 1.0
        assert config.monitoring.cooldown_seconds == 30.0
        assert config.monitoring.site_id == "site-1"
        assert config.monitoring.thresholds.oee.min == 0.75
        assert config.logging.level == LogLevel.WARNING
        assert config.hierarchy is None

    def test_hierarchy_file_loaded(self, config_dir):
        (config_dir / "hierarchy.yaml").write_text(
            "hierarchy:\n  id: plant-7\n  name: Plant 7\n", encoding="utf-8"
        )

        assert load_config(config_dir).hierarchy == {"id": "plant-7", "name": "Plant 7"}

    def test_hierarchy_without_root_key(self, config_dir):
        (config_dir / "hierarchy.yaml").write_text("id: plant-7\n", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="hierarchy"):
            load_config(config_dir)

    def test_config_is_immutable(self, config_dir):
        config = load_config(config_dir)

        with pytest.raises(ValidationError):
            config.monitoring.cooldown_seconds = 5


class TestEnvironmentOverrides:
    def test_site_id(self, config_dir, monkeypatch):
        monkeypatch.setenv("SITE_ID", "site-9")

        assert load_config(config_dir).monitoring.site_id == "site-9"

    def test_log_level(self, config_dir, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "debug")

        assert load_config(config_dir).logging.level == LogLevel.DEBUG

    def test_unknown_log_level_keeps_file_value(self, config_dir, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "chatty")

        assert load_config(config_dir).logging.level == LogLevel.WARNING


class TestLoadErrors:
    def test_missing_directory(self, tmp_path):
        with pytest.raises(ConfigLoadError, match="not found"):
            ConfigLoader(tmp_path / "nope")

    def test_path_is_a_file(self, config_dir):
        with pytest.raises(ConfigLoadError, match="not a directory"):
            ConfigLoader(config_dir / "monitoring.yaml")

    def test_missing_monitoring_file(self, tmp_path):
        with pytest.raises(ConfigLoadError) as exc_info:
            load_config(tmp_path)

        assert exc_info.value.file_path == tmp_path / "monitoring.yaml"

    def test_empty_file(self, tmp_path):
        (tmp_path / "monitoring.yaml").write_text("", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="empty"):
            load_config(tmp_path)

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "monitoring.yaml").write_text("monitoring: [unclosed", encoding="utf-8")

        with pytest.raises(ConfigLoadError, match="Invalid YAML"):
            load_config(tmp_path)

    def test_validation_error_wrapped(self, tmp_path):
        (tmp_path / "monitoring.yaml").write_text(
            "monitoring:\n  check_interval_ms: 10\n", encoding="utf-8"
        )

        with pytest.raises(ConfigLoadError, match="validation failed") as exc_info:
            load_config(tmp_path)

        assert isinstance(exc_info.value.cause, ValidationError)

    def test_unknown_key_rejected(self, tmp_path):
        (tmp_path / "monitoring.yaml").write_text(
            "monitoring:\n  poll_every: 5\n", encoding="utf-8"
        )

        with pytest.raises(ConfigLoadError):
            load_config(tmp_path)


class TestModelValidation:
    def test_range_bounds_ordered(self):
        with pytest.raises(ValidationError):
            RangeThreshold(min=90, max=80)

    def test_timings_strictly_increasing(self):
        with pytest.raises(ValidationError):
            CascadeTimings(agent_seconds=2.0, work_order_seconds=2.0, escalation_seconds=3.0)

    def test_oee_floor_is_a_ratio(self):
        with pytest.raises(ValidationError):
            MonitoringConfig(thresholds={"oee": {"min": 75}})
