"""Session lifecycle states and the authentication mode."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from .credentials import Credentials


class SessionState(Enum):
    """Where a session is in its lifecycle."""
    IDLE = "idle"
    OPENING = "opening"
    INTRODUCED = "introduced"
    VERIFIED = "verified"
    CONFIGURED = "configured"
    READY = "ready"
    CLOSED = "closed"


# A connect may not start while another one is in one of these
HANDSHAKE_STATES = frozenset({
    SessionState.OPENING,
    SessionState.INTRODUCED,
    SessionState.VERIFIED,
    SessionState.CONFIGURED,
})


@dataclass(frozen=True)
class Unauthenticated:
    """Connect without verification; no session keys are derived."""


@dataclass(frozen=True)
class Authenticated:
    """Connect with a credential bundle; verification and configuration run."""
    credentials: Credentials = field(repr=False)


SessionMode = Union[Unauthenticated, Authenticated]
