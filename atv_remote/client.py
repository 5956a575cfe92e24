"""Session orchestration for one appliance.

AppleTV drives the connection handshake through the transport and verifier
collaborators, decodes inbound state snapshots into domain events, correlates
responses and keeps the playback queue poll running while anyone listens for
now-playing or supported-command updates.

Example usage:
    device = Device.from_service(service)
    atv = AppleTV(device, backend)
    await atv.connect(credentials)
    atv.on("nowPlaying", print)
    await atv.press_key("play")
"""

import asyncio
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

import pyee

from .config import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_WAIT_TIMEOUT,
    HOLD_DURATION,
    INTRODUCTION_INFO,
    POLL_ARTWORK_HEIGHT,
    POLL_ARTWORK_WIDTH,
    POLL_INTERVAL,
    POLL_QUEUE_LENGTH,
    POLL_QUEUE_LOCATION,
)
from .correlator import MessageCorrelator
from .credentials import Credentials
from .device import Device
from .discovery import DiscoveredService
from .exceptions import AtvError, HandshakeError, TransportError
from .hid import CommandEncoder
from .keys import Key
from .messages import MessageType, OutboundEnvelope, ProtocolMessage, SchemaRegistry, get_registry
from .models import NowPlayingInfo, supported_commands_from_payload
from .poller import POLLED_EVENTS, SubscriptionPoller
from .session import HANDSHAKE_STATES, Authenticated, SessionMode, SessionState, Unauthenticated
from .transport import Backend

_LOGGER = logging.getLogger(__name__)

# Transport events re-emitted unchanged
FORWARDED_EVENTS = ("connect", "debug")


class AppleTV(pyee.EventEmitter):
    """Client session with one appliance.

    Events:
        message: every inbound ProtocolMessage
        nowPlaying: NowPlayingInfo, or None when the state was cleared
        supportedCommands: list of SupportedCommand
        playbackQueue: the raw playback queue block
        connect, close, error, debug: forwarded from the transport

    Args:
        device: Device to talk to
        backend: Factories for transport, pairing and verifier
        registry: Message schema registry (default registry if None)
        client_name: Name announced in the introduction
        poll_interval: Seconds between playback queue refreshes
        hold_duration: Dwell for held keys
        loop: Event loop for the poll timer (running loop if None)
    """

    def __init__(
        self,
        device: Device,
        backend: Backend,
        registry: Optional[SchemaRegistry] = None,
        client_name: str = DEFAULT_CLIENT_NAME,
        poll_interval: float = POLL_INTERVAL,
        hold_duration: float = HOLD_DURATION,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        super().__init__()
        self._device = device
        self._backend = backend
        self._registry = registry or get_registry()
        self.client_name = client_name
        self._state = SessionState.IDLE

        self._correlator = MessageCorrelator(self)
        self._poller = SubscriptionPoller(
            self._refresh_playback_queue,
            lambda: self._transport.is_open,
            interval=poll_interval,
            loop=loop,
        )
        self._encoder = CommandEncoder(self._send_hid_event, hold_duration=hold_duration)

        self._transport = backend.create_transport(device)
        self._transport.on("message", self._on_transport_message)
        self._transport.on("close", self._on_transport_close)
        self._transport.on("error", self._on_transport_error)
        for event in FORWARDED_EVENTS:
            self._transport.on(event, self._forwarder(event))

    @classmethod
    def from_service(cls, service: DiscoveredService, backend: Backend, **kwargs) -> "AppleTV":
        """Create a session for a discovery record.

        Raises:
            AddressSelectionError: if the record has no usable address
        """
        return cls(Device.from_service(service), backend, **kwargs)

    # Properties
    @property
    def device(self) -> Device:
        return self._device

    @property
    def name(self) -> str:
        return self._device.name

    @property
    def address(self) -> str:
        return self._device.address

    @property
    def port(self) -> int:
        return self._device.port

    @property
    def unique_id(self) -> Optional[str]:
        return self._device.unique_id

    @property
    def state(self) -> SessionState:
        """Current session state."""
        return self._state

    @property
    def credentials(self) -> Optional[Credentials]:
        """Credentials attached to the device, with session keys once verified."""
        return self._device.credentials

    @property
    def is_connected(self) -> bool:
        """Check if the session is ready and the transport open."""
        return self._state == SessionState.READY and self._transport.is_open

    @property
    def poller(self) -> SubscriptionPoller:
        return self._poller

    # Listener bookkeeping. pyee routes on/once/add_listener through
    # _add_event_handler, and remove_listener plus fired once handlers
    # through _remove_listener (the latter under the emitter lock).
    def _add_event_handler(self, event, k, v):
        is_new = event in POLLED_EVENTS and k not in self.listeners(event)
        super()._add_event_handler(event, k, v)
        if is_new:
            self._poller.add_interest()

    def _remove_listener(self, event, f):
        was_registered = event in POLLED_EVENTS and f in self.listeners(event)
        super()._remove_listener(event, f)
        if was_registered:
            self._poller.remove_interest()

    def remove_all_listeners(self, event=None):
        if event is None:
            dropped = sum(len(self.listeners(name)) for name in POLLED_EVENTS)
        elif event in POLLED_EVENTS:
            dropped = len(self.listeners(event))
        else:
            dropped = 0
        super().remove_all_listeners(event)
        self._poller.remove_interest(dropped)

    # Transport events
    def _forwarder(self, event: str) -> Callable:
        def forward(*args):
            self.emit(event, *args)
        return forward

    def _on_transport_close(self, *args) -> None:
        if self._state == SessionState.READY:
            _LOGGER.info("Connection to %s closed", self.name)
            self._state = SessionState.CLOSED
        self.emit("close", *args)

    def _on_transport_error(self, error: Exception) -> None:
        self._emit_error(error)

    def _emit_error(self, error: Exception) -> None:
        if self.listeners("error"):
            self.emit("error", error)
        else:
            _LOGGER.warning("Unhandled error from %s: %s", self.name, error)

    def _on_transport_message(self, message: ProtocolMessage) -> None:
        self.emit("message", message)

        if message.type != MessageType.SET_STATE_MESSAGE:
            return

        payload = message.payload
        if payload is None:
            self.emit("nowPlaying", None)
            return

        if payload.get("nowPlayingInfo") is not None:
            self.emit("nowPlaying", NowPlayingInfo(payload))
        if payload.get("supportedCommands") is not None:
            self.emit("supportedCommands", supported_commands_from_payload(payload["supportedCommands"]))
        if payload.get("playbackQueue") is not None:
            self.emit("playbackQueue", payload["playbackQueue"])

    # Connection
    async def connect(self, credentials: Optional[Credentials] = None) -> "AppleTV":
        """Open the connection and run the handshake.

        Without credentials only the introduction runs. With credentials the
        session is verified, the derived keys are stored on the device's
        credentials and state updates are enabled.

        Args:
            credentials: Paired credential bundle, or None

        Returns:
            self, once ready

        Raises:
            HandshakeError: if a connect is already running, or a handshake
                step failed (the cause is chained)
            TransportError: if the transport failed to open
        """
        if self._state in HANDSHAKE_STATES:
            raise HandshakeError(f"Connect to {self.name} already in progress ({self._state.value})")

        mode: SessionMode
        if credentials is not None:
            mode = Authenticated(credentials)
            self._device.session_id = credentials.session_id
            self._device.credentials = credentials.without_session_keys()
        else:
            mode = Unauthenticated()
            self._device.credentials = None

        _LOGGER.debug("Connecting to %s at %s:%s", self.name, self.address, self.port)
        self._state = SessionState.OPENING
        try:
            await self._open_transport()
        except BaseException:
            self._abort()
            raise

        try:
            await self._handshake(mode)
        except asyncio.CancelledError:
            self._abort()
            raise
        except Exception as e:
            failed_in = self._state
            self._abort()
            if isinstance(e, HandshakeError):
                raise
            raise HandshakeError(f"Handshake with {self.name} failed after {failed_in.value}: {e}") from e

        self._advance(SessionState.READY)
        self._poller.resume()
        _LOGGER.info("Connected to %s at %s:%s", self.name, self.address, self.port)
        return self

    async def _open_transport(self) -> None:
        try:
            await self._transport.open()
        except TransportError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to open connection to {self.address}:{self.port}: {e}") from e

    def _advance(self, state: SessionState) -> None:
        if self._state == SessionState.CLOSED:
            raise HandshakeError(f"Disconnected from {self.name} during connect")
        self._state = state

    async def _handshake(self, mode: SessionMode) -> None:
        self._advance(SessionState.OPENING)
        await self._introduce()
        self._advance(SessionState.INTRODUCED)

        if isinstance(mode, Unauthenticated):
            return

        await self._verify()
        self._advance(SessionState.VERIFIED)

        await self._configure()
        self._advance(SessionState.CONFIGURED)

    async def _introduce(self) -> None:
        _LOGGER.debug("Sending introduction as %s", self._device.session_id)
        body = dict(INTRODUCTION_INFO)
        body["uniqueIdentifier"] = self._device.session_id
        body["name"] = self.client_name
        await self.send("DeviceInfoMessage", "DeviceInfoMessage", body, wait_for_response=True)

    async def _verify(self) -> None:
        _LOGGER.debug("Verifying session with %s", self.name)
        verifier = self._backend.create_verifier(self._device, self._transport)
        read_key, write_key = await verifier.verify()
        self._device.credentials = self._device.credentials.with_session_keys(read_key, write_key)
        _LOGGER.info("Verified session with %s", self.name)

        schema = self._registry.resolve("SetConnectionStateMessage", "SetConnectionStateMessage")
        connected = schema.lookup_enum("ConnectionState").CONNECTED
        await self.send("SetConnectionStateMessage", "SetConnectionStateMessage", {"state": connected})

    async def _configure(self) -> None:
        _LOGGER.debug("Enabling state updates from %s", self.name)
        await self.send(
            "ClientUpdatesConfigMessage",
            "ClientUpdatesConfigMessage",
            {
                "nowPlayingUpdates": True,
                "artworkUpdates": True,
                "keyboardUpdates": False,
                "volumeUpdates": False,
            },
        )

    def _abort(self) -> None:
        self._state = SessionState.CLOSED
        try:
            self._transport.close()
        except Exception as e:
            _LOGGER.debug("Error closing transport after failed connect: %s", e)

    def disconnect(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._state == SessionState.CLOSED:
            return
        self._state = SessionState.CLOSED
        self._transport.close()
        _LOGGER.info("Disconnected from %s", self.name)

    async def pair(self) -> Credentials:
        """Pair with the device (run after an unauthenticated connect).

        Returns:
            Credential bundle to store and pass to connect()
        """
        pairing = self._backend.create_pairing(self._device, self._transport)
        credentials = await pairing.initiate_pair()
        _LOGGER.info("Paired with %s", self.name)
        return credentials

    # Messages
    def send(
        self,
        definition: str,
        type_name: str,
        body: Optional[Mapping[str, Any]] = None,
        wait_for_response: bool = False,
        priority: int = 0,
    ) -> Awaitable[Optional[ProtocolMessage]]:
        """Build a typed message and send it.

        The schema is resolved before anything is awaited, so unknown names
        raise right here rather than from the returned awaitable.

        Args:
            definition: Message definition name
            type_name: Message type name within the definition
            body: Field values
            wait_for_response: Resolve with the transport's matching response
            priority: Transport priority hint

        Returns:
            Awaitable resolving to the response (or None)

        Raises:
            SchemaError: for unknown names or invalid fields
        """
        schema = self._registry.resolve(definition, type_name)
        message = schema.create(body)
        return self._send_message(message, wait_for_response, priority)

    async def _send_message(
        self,
        message: ProtocolMessage,
        wait_for_response: bool,
        priority: int,
    ) -> Optional[ProtocolMessage]:
        envelope = OutboundEnvelope(
            message=message,
            wait_for_response=wait_for_response,
            priority=priority,
            credentials=self._device.credentials,
        )
        _LOGGER.debug("Sending %s (wait=%s)", message.type.name, wait_for_response)
        try:
            return await self._transport.send(envelope)
        except AtvError:
            raise
        except Exception as e:
            raise TransportError(f"Failed to send {message.type.name}: {e}") from e

    async def wait_for_type(
        self,
        message_type: Union[MessageType, int],
        timeout: float = DEFAULT_WAIT_TIMEOUT,
    ) -> ProtocolMessage:
        """Wait for the next inbound message of a type.

        Raises:
            MessageTimeoutError: if none arrived in time
        """
        return await self._correlator.wait_for(message_type, timeout)

    @staticmethod
    def _playback_queue_body(options: Mapping[str, Any]) -> Dict[str, Any]:
        body = dict(options)
        artwork_size = body.pop("artworkSize", None)
        if artwork_size is not None:
            body["artworkWidth"] = artwork_size["width"]
            body["artworkHeight"] = artwork_size["height"]
        body["requestID"] = str(uuid.uuid4()).upper()
        return body

    async def request_playback_queue(self, options: Mapping[str, Any]) -> Optional[ProtocolMessage]:
        """Request the playback queue and wait for the response.

        Args:
            options: PlaybackQueueRequestMessage fields; an artworkSize
                {width, height} entry is accepted as a shorthand

        Returns:
            The transport's response
        """
        body = self._playback_queue_body(options)
        return await self.send(
            "PlaybackQueueRequestMessage",
            "PlaybackQueueRequestMessage",
            body,
            wait_for_response=True,
        )

    async def _refresh_playback_queue(self) -> None:
        body = self._playback_queue_body({
            "length": POLL_QUEUE_LENGTH,
            "location": POLL_QUEUE_LOCATION,
            "artworkSize": {"width": POLL_ARTWORK_WIDTH, "height": POLL_ARTWORK_HEIGHT},
        })
        await self.send("PlaybackQueueRequestMessage", "PlaybackQueueRequestMessage", body)

    # Input
    async def press_key(self, key: Union[Key, str]) -> None:
        """Press a remote key.

        Raises:
            UnknownKeyError: for an unknown key name
        """
        await self._encoder.press(key)

    async def _send_hid_event(self, data: bytes) -> None:
        await self.send("SendHIDEventMessage", "SendHIDEventMessage", {"hidEventData": data})

    async def wake(self) -> None:
        """Ask the device to wake up."""
        await self.send("WakeDeviceMessage", "WakeDeviceMessage")

    def __repr__(self) -> str:
        return f"AppleTV({self.name!r}, {self.address}:{self.port}, state={self._state.value})"
