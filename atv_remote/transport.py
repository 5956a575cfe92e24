"""Interfaces of the collaborators the session drives.

Framing, encryption, socket I/O and the pairing/verification cryptography live
behind these interfaces. A backend bundles factories for all three so the
command line can load one from an import path.
"""

import abc
from typing import Optional, Protocol, Tuple

import pyee

from .credentials import Credentials
from .device import Device
from .messages import OutboundEnvelope, ProtocolMessage


class Transport(pyee.EventEmitter, abc.ABC):
    """Persistent message connection to one device.

    Events:
        message: a decoded ProtocolMessage
        connect: the connection opened
        close: the connection closed
        error: an exception
        debug: a diagnostic text line
    """

    @property
    @abc.abstractmethod
    def is_open(self) -> bool:
        """True while messages can be sent."""

    @abc.abstractmethod
    async def open(self) -> None:
        """Open the connection."""

    @abc.abstractmethod
    def close(self) -> None:
        """Close the connection."""

    @abc.abstractmethod
    async def send(self, envelope: OutboundEnvelope) -> Optional[ProtocolMessage]:
        """Send one message.

        Returns:
            The matching response when envelope.wait_for_response is set,
            else None
        """


class Pairing(Protocol):
    """Long-term pairing (PIN entry happens inside)."""

    async def initiate_pair(self) -> Credentials:
        ...


class Verifier(Protocol):
    """Per-session verification of a paired client."""

    async def verify(self) -> Tuple[bytes, bytes]:
        """Return the derived (read_key, write_key)."""
        ...


class Backend(Protocol):
    """Factories for the collaborators of one session."""

    def create_transport(self, device: Device) -> Transport:
        ...

    def create_pairing(self, device: Device, transport: Transport) -> Pairing:
        ...

    def create_verifier(self, device: Device, transport: Transport) -> Verifier:
        ...
