"""Fixtures for atv_remote tests."""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional

import pytest

from atv_remote.client import AppleTV
from atv_remote.credentials import Credentials
from atv_remote.device import Device
from atv_remote.messages import OutboundEnvelope, ProtocolMessage
from atv_remote.transport import Transport


MOCK_READ_KEY = bytes(range(32))
MOCK_WRITE_KEY = bytes(range(32, 64))

MOCK_CREDENTIALS = Credentials(
    session_id="abc",
    identifier="ATV-IDENTIFIER",
    ltpk=bytes.fromhex("aa" * 32),
    ltsk=bytes.fromhex("bb" * 32),
)

# State snapshot with every block the session decodes
MOCK_STATE_PAYLOAD = {
    "displayName": "Music",
    "displayID": "com.apple.Music",
    "playbackState": 1,
    "nowPlayingInfo": {
        "title": "Song",
        "artist": "Band",
        "album": "Record",
        "duration": 200.0,
        "elapsedTime": 50.0,
        "timestamp": 600000000.0,
    },
    "supportedCommands": {
        "supportedCommands": [
            {"command": 1, "enabled": True},
            {"command": 2, "enabled": True, "canScrub": True},
            {"command": 999},
        ],
    },
    "playbackQueue": {"location": 0, "contentItems": [{"identifier": "item-1"}]},
}


class FakeTransport(Transport):
    """In-memory transport recording every call in a shared list."""

    def __init__(self, calls: List[str]):
        super().__init__()
        self.calls = calls
        self.sent: List[OutboundEnvelope] = []
        self.responses: Dict[int, ProtocolMessage] = {}
        self.send_errors: Dict[int, Exception] = {}
        self.open_error: Optional[Exception] = None
        self.open_gate: Optional[asyncio.Event] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> None:
        self.calls.append("open")
        if self.open_gate is not None:
            await self.open_gate.wait()
        if self.open_error is not None:
            raise self.open_error
        self._open = True
        self.emit("connect")

    def close(self) -> None:
        self.calls.append("close")
        was_open = self._open
        self._open = False
        if was_open:
            self.emit("close")

    async def send(self, envelope: OutboundEnvelope) -> Optional[ProtocolMessage]:
        self.calls.append(f"send:{envelope.type.name}")
        self.sent.append(envelope)
        error = self.send_errors.get(envelope.type)
        if error is not None:
            raise error
        if envelope.wait_for_response:
            return self.responses.get(envelope.type, ProtocolMessage(type=envelope.type, payload={}))
        return None

    def receive(self, message: ProtocolMessage) -> None:
        """Deliver an inbound message."""
        self.emit("message", message)

    def sent_of_type(self, message_type) -> List[OutboundEnvelope]:
        return [envelope for envelope in self.sent if envelope.type == message_type]


class FakeVerifier:
    """Verifier returning fixed session keys."""

    def __init__(self, calls: List[str]):
        self.calls = calls
        self.keys = (MOCK_READ_KEY, MOCK_WRITE_KEY)
        self.error: Optional[Exception] = None

    async def verify(self):
        self.calls.append("verify")
        if self.error is not None:
            raise self.error
        return self.keys


class FakePairing:
    """Pairing returning the mock credential bundle."""

    def __init__(self, calls: List[str]):
        self.calls = calls

    async def initiate_pair(self) -> Credentials:
        self.calls.append("pair")
        return MOCK_CREDENTIALS


class FakeBackend:
    """Backend handing out one set of fakes sharing a call log."""

    def __init__(self):
        self.calls: List[str] = []
        self.transport = FakeTransport(self.calls)
        self.verifier = FakeVerifier(self.calls)
        self.pairing = FakePairing(self.calls)
        self.device: Optional[Device] = None

    def create_transport(self, device: Device) -> FakeTransport:
        self.device = device
        return self.transport

    def create_pairing(self, device: Device, transport: Transport) -> FakePairing:
        return self.pairing

    def create_verifier(self, device: Device, transport: Transport) -> FakeVerifier:
        return self.verifier


@pytest.fixture
def backend() -> FakeBackend:
    """Fresh fake backend."""
    return FakeBackend()


@pytest.fixture
def transport(backend: FakeBackend) -> FakeTransport:
    """The backend's transport."""
    return backend.transport


@pytest.fixture
def device() -> Device:
    """Device with a fixed address."""
    return Device("Living Room", "10.0.0.5", 7000, unique_id="ATV-UNIQUE-1")


@pytest.fixture
def atv(device: Device, backend: FakeBackend) -> AppleTV:
    """Session over the fake backend."""
    return AppleTV(device, backend, client_name="test-client", poll_interval=0.01, hold_duration=0.01)
