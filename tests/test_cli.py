"""Tests for the command-line interface."""

from __future__ import annotations

from unittest.mock import patch

import pytest
import yaml

from atv_remote import cli
from atv_remote.client import AppleTV
from atv_remote.config import loader
from atv_remote.config.storage import CredentialStorage
from atv_remote.device import Device
from atv_remote.hid import decode_hid_event
from atv_remote.messages import MessageType

from .conftest import MOCK_CREDENTIALS, FakeBackend

MOCK_CONFIG = {
    "default_device": "living_room",
    "devices": {
        "ATV-1": {
            "name": "Living Room",
            "alias": "living_room",
            "addresses": ["fe80::1", "10.0.0.5"],
            "port": 7000,
        },
    },
    "options": {"backend": "tests.conftest:FakeBackend", "poll_interval": 2.5},
}


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path):
    """Point the CLI at a temporary config file and credential store."""
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(MOCK_CONFIG))
    monkeypatch.setattr(loader, "CONFIG_SEARCH_PATHS", [path])
    monkeypatch.setattr(loader, "_cached_config", None)
    monkeypatch.setattr(loader, "_cached_path", None)
    for env_var in loader.ENV_MAPPINGS:
        monkeypatch.delenv(env_var, raising=False)
    return path


@pytest.fixture
def storage(tmp_path) -> CredentialStorage:
    """Credential store used by the CLI."""
    storage = CredentialStorage(tmp_path / "credentials.json")
    with patch("atv_remote.cli.get_storage", return_value=storage):
        yield storage


@pytest.fixture
def backend() -> FakeBackend:
    """Backend behind the session the CLI creates."""
    return FakeBackend()


@pytest.fixture
def session(backend: FakeBackend):
    """Patch client creation to use the fake backend."""
    atv = AppleTV(Device("Living Room", "10.0.0.5", 7000, unique_id="ATV-1"), backend, hold_duration=0.01)
    with patch("atv_remote.cli.create_client", return_value=atv):
        yield atv


def test_no_command_prints_help(capsys) -> None:
    """Test running without a command shows usage."""
    assert cli.main([]) == 0
    assert "usage: atv" in capsys.readouterr().out


def test_keys_lists_all_keys(capsys) -> None:
    """Test the key listing includes held keys and aliases."""
    assert cli.main(["keys"]) == 0

    out = capsys.readouterr().out
    assert "topmenu" in out
    assert "[hold]" in out
    assert "ok" in out


def test_unknown_key(capsys) -> None:
    """Test an unknown key is rejected before connecting."""
    assert cli.main(["key", "volume_up"]) == 1
    assert "Unknown key" in capsys.readouterr().err


def test_create_client_from_config() -> None:
    """Test the session is built from the configured device and backend."""
    atv = cli.create_client("living_room")

    assert atv.address == "10.0.0.5"
    assert atv.port == 7000
    assert atv.unique_id == "ATV-1"
    assert atv.poller.interval == 2.5


def test_create_client_unknown_device() -> None:
    """Test an unknown device is reported."""
    with pytest.raises(ValueError, match="not found"):
        cli.create_client("attic")


def test_key_press(session: AppleTV, backend: FakeBackend, storage: CredentialStorage, capsys) -> None:
    """Test a key press connects with stored credentials and sends the events."""
    storage.save_credentials("ATV-1", MOCK_CREDENTIALS)

    assert cli.main(["key", "play", "--repeat", "2"]) == 0

    assert "verify" in backend.calls
    assert backend.calls[-1] == "close"
    events = backend.transport.sent_of_type(MessageType.SEND_HID_EVENT_MESSAGE)
    assert len(events) == 4
    assert decode_hid_event(events[0].message.payload["hidEventData"]) == (12, 0xB0, True)
    assert "Sent: play x2" in capsys.readouterr().out


def test_key_press_without_credentials(session: AppleTV, backend: FakeBackend, storage: CredentialStorage) -> None:
    """Test a key press still works unauthenticated."""
    assert cli.main(["key", "up"]) == 0
    assert "verify" not in backend.calls


def test_pair_saves_credentials(session: AppleTV, backend: FakeBackend, storage: CredentialStorage, capsys) -> None:
    """Test pairing stores the bundle under the device's unique id."""
    assert cli.main(["pair", "--show"]) == 0

    assert "pair" in backend.calls
    assert storage.get_credentials("ATV-1") == MOCK_CREDENTIALS
    assert MOCK_CREDENTIALS.to_string() in capsys.readouterr().out


def test_connect_failure(session: AppleTV, backend: FakeBackend, storage: CredentialStorage, capsys) -> None:
    """Test a failed connect exits with an error."""
    backend.transport.open_error = OSError("unreachable")

    assert cli.main(["wake"]) == 1
    assert "unreachable" in capsys.readouterr().err


def test_wake(session: AppleTV, backend: FakeBackend, storage: CredentialStorage) -> None:
    """Test wake sends the wake message."""
    assert cli.main(["wake"]) == 0
    assert "send:WAKE_DEVICE_MESSAGE" in backend.calls


def test_watch_for_duration(session: AppleTV, storage: CredentialStorage, capsys) -> None:
    """Test watch returns after the duration and releases its listeners."""
    assert cli.main(["watch", "--duration", "0.05"]) == 0

    assert "Watching Living Room" in capsys.readouterr().out
    assert session.poller.interest_count == 0


def test_config_add_and_list(isolated_config, capsys) -> None:
    """Test adding a device through the CLI."""
    assert cli.main(["config", "add", "ATV-2", "--address", "10.0.0.6", "--alias", "bedroom"]) == 0

    saved = yaml.safe_load(isolated_config.read_text())
    assert saved["devices"]["ATV-2"]["addresses"] == ["10.0.0.6"]
    assert saved["devices"]["ATV-2"]["alias"] == "bedroom"

    assert cli.main(["config", "list"]) == 0
    out = capsys.readouterr().out
    assert "ATV-2 (bedroom)" in out
    assert "ATV-1 (living_room)" in out


def test_config_add_requires_address(capsys) -> None:
    """Test add without an address fails."""
    assert cli.main(["config", "add", "ATV-2"]) == 1


def test_config_set_default_unknown(capsys) -> None:
    """Test setting an unknown default fails."""
    assert cli.main(["config", "set-default", "attic"]) == 1


def test_credentials_list_and_delete(storage: CredentialStorage, capsys) -> None:
    """Test listing and deleting stored credentials by alias."""
    storage.save_credentials("ATV-1", MOCK_CREDENTIALS, name="Living Room", address="10.0.0.5", port=7000)

    assert cli.main(["credentials", "list"]) == 0
    assert "ATV-1 - Living Room" in capsys.readouterr().out

    assert cli.main(["credentials", "delete", "living_room"]) == 0
    assert storage.get_credentials("ATV-1") is None
    assert cli.main(["credentials", "delete", "living_room"]) == 1
