"""Protocol message types, schemas and the outbound envelope.

Outbound bodies are built from plain mappings. The schema registry knows
each message definition by (definition name, message type name), checks the
body against the declared fields and produces a typed ProtocolMessage.
Serializing that message to bytes is the transport's job.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from .exceptions import SchemaError


class MessageType(IntEnum):
    """Protocol message type identifiers."""
    UNKNOWN_MESSAGE = 0
    SEND_COMMAND_MESSAGE = 1
    SEND_COMMAND_RESULT_MESSAGE = 2
    GET_STATE_MESSAGE = 3
    SET_STATE_MESSAGE = 4
    SET_ARTWORK_MESSAGE = 5
    REGISTER_HID_DEVICE_MESSAGE = 6
    REGISTER_HID_DEVICE_RESULT_MESSAGE = 7
    SEND_HID_EVENT_MESSAGE = 8
    SEND_HID_REPORT_MESSAGE = 9
    SEND_VIRTUAL_TOUCH_EVENT_MESSAGE = 10
    NOTIFICATION_MESSAGE = 11
    CONTENT_ITEMS_CHANGED_NOTIFICATION_MESSAGE = 12
    DEVICE_INFO_MESSAGE = 15
    CLIENT_UPDATES_CONFIG_MESSAGE = 16
    VOLUME_CONTROL_AVAILABILITY_MESSAGE = 17
    KEYBOARD_MESSAGE = 23
    PLAYBACK_QUEUE_REQUEST_MESSAGE = 32
    TRANSACTION_MESSAGE = 33
    CRYPTO_PAIRING_MESSAGE = 34
    SET_READY_STATE_MESSAGE = 36
    DEVICE_INFO_UPDATE_MESSAGE = 37
    SET_CONNECTION_STATE_MESSAGE = 38
    WAKE_DEVICE_MESSAGE = 41


class ConnectionState(IntEnum):
    """States carried by SetConnectionStateMessage."""
    NONE = 0
    CONNECTING = 1
    CONNECTED = 2
    DISCONNECTED = 3


@dataclass
class ProtocolMessage:
    """A typed application message, inbound or outbound."""
    type: Union[MessageType, int]
    payload: Optional[Mapping[str, Any]] = None
    identifier: Optional[str] = None


@dataclass
class OutboundEnvelope:
    """What the transport receives for one send."""
    message: ProtocolMessage
    wait_for_response: bool = False
    priority: int = 0
    credentials: Any = field(default=None, repr=False)

    @property
    def type(self) -> Union[MessageType, int]:
        return self.message.type


FieldTypes = Union[Type, Tuple[Type, ...]]


@dataclass(frozen=True)
class MessageSchema:
    """Constructor/validator for one message type."""
    name: str
    message_type: MessageType
    fields: Mapping[str, FieldTypes] = field(default_factory=dict)
    enums: Mapping[str, Type[IntEnum]] = field(default_factory=dict)

    def lookup_enum(self, name: str) -> Type[IntEnum]:
        try:
            return self.enums[name]
        except KeyError:
            raise SchemaError(f"{self.name} has no enum {name!r}") from None

    def create(self, body: Optional[Mapping[str, Any]] = None) -> ProtocolMessage:
        """Build a ProtocolMessage from a plain mapping.

        Raises:
            SchemaError: for unknown fields or values of the wrong type
        """
        body = dict(body or {})
        for key, value in body.items():
            if key not in self.fields:
                raise SchemaError(f"{self.name} has no field {key!r}")
            if value is not None and not isinstance(value, self.fields[key]):
                raise SchemaError(
                    f"{self.name}.{key} expects {self.fields[key]}, got {type(value).__name__}"
                )
        return ProtocolMessage(type=self.message_type, payload=body)


_NUMBER = (int, float)

# Definition name -> message type name -> schema
MESSAGE_DEFINITIONS: Dict[str, Dict[str, MessageSchema]] = {
    "DeviceInfoMessage": {
        "DeviceInfoMessage": MessageSchema(
            "DeviceInfoMessage",
            MessageType.DEVICE_INFO_MESSAGE,
            {
                "uniqueIdentifier": str,
                "name": str,
                "localizedModelName": str,
                "systemBuildVersion": str,
                "applicationBundleIdentifier": str,
                "applicationBundleVersion": str,
                "protocolVersion": int,
                "allowsPairing": bool,
                "lastSupportedMessageType": int,
                "supportsSystemPairing": bool,
            },
        ),
    },
    "SetConnectionStateMessage": {
        "SetConnectionStateMessage": MessageSchema(
            "SetConnectionStateMessage",
            MessageType.SET_CONNECTION_STATE_MESSAGE,
            {"state": int},
            {"ConnectionState": ConnectionState},
        ),
    },
    "ClientUpdatesConfigMessage": {
        "ClientUpdatesConfigMessage": MessageSchema(
            "ClientUpdatesConfigMessage",
            MessageType.CLIENT_UPDATES_CONFIG_MESSAGE,
            {
                "artworkUpdates": bool,
                "nowPlayingUpdates": bool,
                "volumeUpdates": bool,
                "keyboardUpdates": bool,
            },
        ),
    },
    "PlaybackQueueRequestMessage": {
        "PlaybackQueueRequestMessage": MessageSchema(
            "PlaybackQueueRequestMessage",
            MessageType.PLAYBACK_QUEUE_REQUEST_MESSAGE,
            {
                "location": int,
                "length": int,
                "includeMetadata": bool,
                "artworkWidth": _NUMBER,
                "artworkHeight": _NUMBER,
                "includeLanguageOptions": bool,
                "includeLyrics": bool,
                "includeSections": bool,
                "includeInfo": bool,
                "requestID": str,
                "contentItemIdentifiers": list,
            },
        ),
    },
    "SendHIDEventMessage": {
        "SendHIDEventMessage": MessageSchema(
            "SendHIDEventMessage",
            MessageType.SEND_HID_EVENT_MESSAGE,
            {"hidEventData": (bytes, bytearray)},
        ),
    },
    "WakeDeviceMessage": {
        "WakeDeviceMessage": MessageSchema(
            "WakeDeviceMessage",
            MessageType.WAKE_DEVICE_MESSAGE,
        ),
    },
}


class SchemaRegistry:
    """Resolves message schemas by definition and type name."""

    def __init__(self, definitions: Optional[Mapping[str, Mapping[str, MessageSchema]]] = None):
        self._definitions = dict(definitions if definitions is not None else MESSAGE_DEFINITIONS)

    def register(self, definition: str, schema: MessageSchema) -> None:
        """Add or replace a message schema."""
        self._definitions.setdefault(definition, {})
        self._definitions[definition] = {**self._definitions[definition], schema.name: schema}

    def resolve(self, definition: str, type_name: str) -> MessageSchema:
        """Look up a message schema.

        Raises:
            SchemaError: if the definition or type name is unknown
        """
        types = self._definitions.get(definition)
        if types is None:
            raise SchemaError(f"Unknown message definition {definition!r}")
        schema = types.get(type_name)
        if schema is None:
            raise SchemaError(f"Unknown message type {type_name!r} in {definition!r}")
        return schema


_default_registry: Optional[SchemaRegistry] = None


def get_registry() -> SchemaRegistry:
    """Get the default schema registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = SchemaRegistry()
    return _default_registry
