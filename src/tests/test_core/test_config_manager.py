import pytest
from pathlib import Path
from datetime import timedelta
from home_bridge.core.config_manager import ConfigManager
from home_bridge.utils.exceptions import ConfigurationError

DEFAULT_CONFIG = Path(__file__).parents[2] / "config" / "default.yml"


def test_default_config_loads():
    config = ConfigManager.load_config(str(DEFAULT_CONFIG))

    assert config.communication.mqtt.host == "localhost"
    assert config.ingestion.throttle == timedelta(seconds=60)
    assert config.ingestion.history_window == timedelta(hours=24)
    assert config.ingestion.layout.subscriptions() == [
        "esp32/temperature",
        "esp32/humidity",
        "esp32/airquality",
        "esp32/device/#",
    ]
    assert config.devices["airConditioner"] == "control/ac"


def test_missing_sections_are_reported(tmp_path):
    path = tmp_path / "partial.yml"
    path.write_text("api:\n  port: 5000\n")

    with pytest.raises(ConfigurationError, match="communication"):
        ConfigManager.load_config(str(path))


def test_empty_file_is_rejected(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("")

    with pytest.raises(ConfigurationError):
        ConfigManager.load_config(str(path))


def test_invalid_yaml_is_rejected(tmp_path):
    path = tmp_path / "broken.yml"
    path.write_text("api: [unclosed\n")

    with pytest.raises(ConfigurationError):
        ConfigManager.load_config(str(path))


def test_missing_file_is_rejected(tmp_path):
    with pytest.raises(ConfigurationError, match="not found"):
        ConfigManager.load_config(str(tmp_path / "nope.yml"))


def test_invalid_values_are_rejected():
    config = {
        "api": {},
        "communication": {"mqtt": {"host": "broker", "publish_qos": 3}},
        "database": {},
        "ingestion": {},
        "devices": {},
        "logging": {},
    }
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(config)


def test_unknown_log_level_is_rejected():
    config = {
        "api": {},
        "communication": {"mqtt": {"host": "broker"}},
        "database": {},
        "ingestion": {},
        "devices": {},
        "logging": {"level": "verbose"},
    }
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(config)
