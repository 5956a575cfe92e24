"""Errors raised by atv_remote."""


class AtvError(Exception):
    """Base error for atv_remote."""


class TransportError(AtvError):
    """Raised when the transport fails to open, send or close."""


class MessageTimeoutError(AtvError, TimeoutError):
    """Raised when no message of the awaited type arrived in time."""

    def __init__(self, message_type, timeout: float):
        self.message_type = message_type
        self.timeout = timeout
        super().__init__(f"Timed out waiting for message type {message_type} ({timeout}s)")


class SchemaError(AtvError):
    """Raised for an unknown message definition, type or field."""


class HandshakeError(AtvError):
    """Raised when the session handshake fails after the transport opened."""


class AddressSelectionError(AtvError):
    """Raised when a discovery record holds no usable address."""


class UnknownKeyError(AtvError, KeyError):
    """Raised when a key name does not map to a remote key."""


class ConfigError(AtvError):
    """Raised for invalid configuration."""
