"""Tests for address selection and device construction."""

from __future__ import annotations

import pytest

from atv_remote.device import Device
from atv_remote.discovery import DiscoveredService, select_address
from atv_remote.exceptions import AddressSelectionError


def test_single_address_returned_without_validation() -> None:
    """Test a lone candidate is used even if it is not an IP literal."""
    assert select_address(["not-an-address"]) == "not-an-address"
    assert select_address(["fe80::1"]) == "fe80::1"


def test_ipv4_beats_link_local_ipv6() -> None:
    """Test IPv4 wins over an earlier link-local IPv6 address."""
    assert select_address(["fe80::1", "10.0.0.5"]) == "10.0.0.5"


def test_ipv4_beats_global_ipv6() -> None:
    """Test IPv4 has absolute priority over any IPv6 address."""
    assert select_address(["2001:db8::1", "10.0.0.5", "10.0.0.6"]) == "10.0.0.5"


def test_non_link_local_ipv6_selected() -> None:
    """Test the first non link-local IPv6 is used when there is no IPv4."""
    assert select_address(["fe80::1", "2001:db8::1", "2001:db8::2"]) == "2001:db8::1"


def test_link_local_prefix_is_case_insensitive() -> None:
    """Test upper case link-local addresses are skipped too."""
    assert select_address(["FE80::1", "2001:DB8::1"]) == "2001:DB8::1"


def test_invalid_candidates_skipped() -> None:
    """Test non-literal candidates are ignored when several are present."""
    assert select_address(["apple-tv.local", "192.168.1.20"]) == "192.168.1.20"


def test_only_link_local_raises() -> None:
    """Test two link-local addresses yield no selection."""
    with pytest.raises(AddressSelectionError):
        select_address(["fe80::1", "fe80::2"])


def test_empty_list_raises() -> None:
    """Test a record without addresses is rejected."""
    with pytest.raises(AddressSelectionError):
        select_address([])


def test_service_unique_id_from_txt() -> None:
    """Test the unique id is read from the text record."""
    service = DiscoveredService("Den", ["10.0.0.7"], txt={"UniqueIdentifier": "DEN-1"})
    assert service.unique_id == "DEN-1"
    assert DiscoveredService("Den", ["10.0.0.7"]).unique_id is None


def test_device_from_service() -> None:
    """Test a device built from a record carries the selected address."""
    service = DiscoveredService(
        "Living Room",
        ["fe80::1", "10.0.0.5"],
        port=7000,
        txt={"UniqueIdentifier": "ATV-1"},
    )

    device = Device.from_service(service)

    assert device.address == "10.0.0.5"
    assert device.port == 7000
    assert device.name == "Living Room"
    assert device.unique_id == "ATV-1"


def test_device_from_service_without_usable_address() -> None:
    """Test construction fails fast when no address is usable."""
    service = DiscoveredService("Living Room", ["fe80::1", "fe80::2"])

    with pytest.raises(AddressSelectionError):
        Device.from_service(service)


def test_device_address_is_read_only() -> None:
    """Test the address cannot be changed after construction."""
    device = Device("Living Room", "10.0.0.5")

    with pytest.raises(AttributeError):
        device.address = "10.0.0.6"


def test_device_session_id_generated_once() -> None:
    """Test each device gets its own stable session id."""
    first = Device("A", "10.0.0.5")
    second = Device("B", "10.0.0.6")

    assert first.session_id
    assert first.session_id != second.session_id
    assert first.session_id == first.session_id
    assert Device("C", "10.0.0.7", session_id="fixed").session_id == "fixed"
