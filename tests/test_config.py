"""Tests for configuration loading and device management."""

from __future__ import annotations

from collections import OrderedDict

import pytest
import yaml

from atv_remote.config import loader
from atv_remote.config import (
    DEFAULT_PORT,
    add_device,
    deep_merge,
    get_device_config,
    list_devices,
    load_backend,
    reload_config,
    remove_device,
    set_default_device,
    validate_config,
)
from atv_remote.exceptions import ConfigError

MOCK_CONFIG = {
    "default_device": "living_room",
    "devices": {
        "ATV-1": {
            "name": "Living Room",
            "alias": "living_room",
            "addresses": ["fe80::1", "10.0.0.5"],
            "port": 7000,
        },
        "ATV-2": {
            "name": "Bedroom",
            "addresses": ["10.0.0.6"],
        },
    },
    "options": {"backend": "collections:OrderedDict", "poll_interval": 2.5},
}


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """Keep tests away from real config files, env vars and the cache."""
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [])
    monkeypatch.setattr(loader, "_cached_config", None)
    monkeypatch.setattr(loader, "_cached_path", None)
    for env_var in loader.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def config_file(tmp_path):
    """Config file with two devices, loaded into the cache."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(MOCK_CONFIG))
    reload_config(str(path))
    return path


def test_defaults_without_file() -> None:
    """Test defaults apply when no file is found."""
    config = reload_config()

    assert config["devices"] == {}
    assert config["options"]["poll_interval"] == 5.0
    assert config["options"]["hold_duration"] == 2.0
    assert config["_loaded_from"] is None


def test_load_merges_file(config_file) -> None:
    """Test file values override defaults and untouched defaults remain."""
    config = reload_config(str(config_file))

    assert config["options"]["poll_interval"] == 2.5
    assert config["options"]["hold_duration"] == 2.0
    assert config["_loaded_from"] == str(config_file)


def test_get_device_config_by_alias(config_file) -> None:
    """Test lookup by alias and the default device."""
    assert get_device_config("living_room")["unique_id"] == "ATV-1"
    assert get_device_config()["unique_id"] == "ATV-1"
    assert get_device_config("ATV-2")["name"] == "Bedroom"
    assert get_device_config("missing") is None


def test_env_overrides(monkeypatch, config_file) -> None:
    """Test environment variables override the default device and options."""
    monkeypatch.setenv("ATV_HOST", "10.0.0.9, 2001:db8::9")
    monkeypatch.setenv("ATV_POLL_INTERVAL", "1.5")

    config = reload_config(str(config_file))

    assert config["devices"]["ATV-1"]["addresses"] == ["10.0.0.9", "2001:db8::9"]
    assert config["options"]["poll_interval"] == 1.5


def test_env_host_creates_device(monkeypatch) -> None:
    """Test ATV_HOST alone is enough to get a default device."""
    monkeypatch.setenv("ATV_HOST", "10.0.0.9")
    monkeypatch.setenv("ATV_PORT", "not-a-number")

    config = reload_config()

    assert config["default_device"] == "10.0.0.9"
    assert config["devices"]["10.0.0.9"]["addresses"] == ["10.0.0.9"]
    assert config["devices"]["10.0.0.9"]["port"] == DEFAULT_PORT


def test_add_remove_and_default(config_file) -> None:
    """Test device management writes through to the file."""
    assert add_device("ATV-3", ["10.0.0.7"], alias="den", name="Den")
    assert set_default_device("den")

    saved = yaml.safe_load(config_file.read_text())
    assert saved["devices"]["ATV-3"]["addresses"] == ["10.0.0.7"]
    assert saved["devices"]["ATV-3"]["name"] == "Den"
    assert saved["default_device"] == "den"
    assert "_loaded_from" not in saved

    assert remove_device("den")
    saved = yaml.safe_load(config_file.read_text())
    assert "ATV-3" not in saved["devices"]
    assert saved["default_device"] == "ATV-1"

    assert not remove_device("den")
    assert not set_default_device("nope")


def test_list_devices_marks_default(config_file) -> None:
    """Test the default flag honours aliases."""
    devices = {d["unique_id"]: d for d in list_devices()}

    assert devices["ATV-1"]["is_default"] is True
    assert devices["ATV-2"]["is_default"] is False


def test_validate_config() -> None:
    """Test validation reports each problem."""
    config = deep_merge(MOCK_CONFIG, {"options": {"backend": "no-colon", "hold_duration": 0}})
    config["devices"] = {"ATV-1": {"addresses": [], "port": 70000}}

    errors = validate_config(config)

    assert "devices.ATV-1.addresses is required" in errors
    assert "devices.ATV-1.port must be a valid port number" in errors
    assert any("options.backend" in e for e in errors)
    assert "options.hold_duration must be a positive number" in errors
    assert validate_config({"devices": {}}) == ["No devices configured in 'devices' section"]


def test_validate_requires_backend() -> None:
    """Test a missing backend is only an error when required."""
    config = {"devices": {"ATV-1": {"addresses": ["10.0.0.5"], "port": 7000}}, "options": {}}

    assert validate_config(config) == []
    assert validate_config(config, require_backend=True) == ["options.backend is required to connect"]


def test_load_backend(config_file) -> None:
    """Test backends load from module:attribute paths and classes are instantiated."""
    assert isinstance(load_backend(), OrderedDict)


@pytest.mark.parametrize(
    "path",
    ["no_colon", "atv_remote_no_such_module:Backend", "collections:NoSuchBackend"],
)
def test_load_backend_errors(path) -> None:
    """Test bad backend paths raise ConfigError."""
    with pytest.raises(ConfigError):
        load_backend(path)


def test_load_backend_not_configured() -> None:
    """Test a missing backend setting raises ConfigError."""
    reload_config()
    with pytest.raises(ConfigError):
        load_backend()
