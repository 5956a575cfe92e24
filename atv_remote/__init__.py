"""Media remote protocol client for Apple TV class appliances.

Session handshake, message correlation, state subscriptions and remote key
input on top of a pluggable transport.
"""

__version__ = "1.0.0"

from .client import AppleTV
from .correlator import MessageCorrelator
from .credentials import Credentials
from .device import Device
from .discovery import DiscoveredService, select_address
from .exceptions import (
    AtvError,
    TransportError,
    MessageTimeoutError,
    SchemaError,
    HandshakeError,
    AddressSelectionError,
    UnknownKeyError,
    ConfigError,
)
from .hid import CommandEncoder, encode_hid_event
from .keys import (
    Key,
    KeyUsage,
    KEY_USAGES,
    ALL_KEYS,
    KEY_NAME_MAP,
    get_key,
)
from .messages import (
    MessageType,
    ConnectionState,
    ProtocolMessage,
    OutboundEnvelope,
    MessageSchema,
    SchemaRegistry,
    get_registry,
)
from .models import Command, NowPlayingInfo, PlaybackState, SupportedCommand
from .poller import SubscriptionPoller
from .session import SessionState, Authenticated, Unauthenticated
from .transport import Transport, Pairing, Verifier, Backend
from .config import (
    load_config,
    get_device_config,
    get_default_device,
    list_devices,
    CredentialStorage,
    get_storage,
    DEFAULT_PORT,
)

__all__ = [
    "__version__",
    # Session
    "AppleTV",
    "SessionState",
    "Authenticated",
    "Unauthenticated",
    # Device
    "Device",
    "DiscoveredService",
    "select_address",
    "Credentials",
    # Errors
    "AtvError",
    "TransportError",
    "MessageTimeoutError",
    "SchemaError",
    "HandshakeError",
    "AddressSelectionError",
    "UnknownKeyError",
    "ConfigError",
    # Keys
    "Key",
    "KeyUsage",
    "KEY_USAGES",
    "ALL_KEYS",
    "KEY_NAME_MAP",
    "get_key",
    "CommandEncoder",
    "encode_hid_event",
    # Messages
    "MessageType",
    "ConnectionState",
    "ProtocolMessage",
    "OutboundEnvelope",
    "MessageSchema",
    "SchemaRegistry",
    "get_registry",
    "MessageCorrelator",
    "SubscriptionPoller",
    # Models
    "Command",
    "NowPlayingInfo",
    "PlaybackState",
    "SupportedCommand",
    # Collaborators
    "Transport",
    "Pairing",
    "Verifier",
    "Backend",
    # Config
    "load_config",
    "get_device_config",
    "get_default_device",
    "list_devices",
    "CredentialStorage",
    "get_storage",
    "DEFAULT_PORT",
]
