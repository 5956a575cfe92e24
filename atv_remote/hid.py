"""HID event encoding for remote key presses.

A key press is sent as one or two SendHIDEventMessage payloads. Each payload
is a fixed 60 byte buffer:

    header (8)  | structural block (35) | page, usage, state (3 x uint16 BE) | trailer (11)

The header, structural and trailer blocks are constant and must be sent
bit-for-bit; the appliance rejects anything else.
"""

import asyncio
import logging
import struct
from typing import Awaitable, Callable, Tuple, Union

from .config import HOLD_DURATION
from .keys import KEY_USAGES, Key, get_key

_LOGGER = logging.getLogger(__name__)

HID_HEADER = bytes.fromhex("438922cf08020000")
HID_STRUCTURE = bytes.fromhex(
    "00000000000000000100000000000000020"
    "00000200000000300000001000000000000"
)
HID_TRAILER = bytes.fromhex("0000000000000001000000")

STATE_DOWN = 1
STATE_UP = 0


def encode_hid_event(usage_page: int, usage: int, down: bool) -> bytes:
    """Build the HID event payload for one button transition.

    Args:
        usage_page: HID usage page (16 bit)
        usage: HID usage code (16 bit)
        down: True for press, False for release

    Returns:
        Payload bytes for the hidEventData field
    """
    data = struct.pack(">HHH", usage_page, usage, STATE_DOWN if down else STATE_UP)
    return HID_HEADER + HID_STRUCTURE + data + HID_TRAILER


def decode_hid_event(payload: bytes) -> Tuple[int, int, bool]:
    """Extract (usage_page, usage, down) from an encoded payload."""
    offset = len(HID_HEADER) + len(HID_STRUCTURE)
    usage_page, usage, state = struct.unpack_from(">HHH", payload, offset)
    return usage_page, usage, state == STATE_DOWN


class CommandEncoder:
    """Turns keys into timed HID event sends.

    Args:
        send_event: Coroutine function taking one payload; completes when the
            transport accepted the event
        hold_duration: Dwell in seconds between press and release of held keys
        sleep: Sleep coroutine (injectable for tests)
    """

    def __init__(
        self,
        send_event: Callable[[bytes], Awaitable],
        hold_duration: float = HOLD_DURATION,
        sleep: Callable[[float], Awaitable] = asyncio.sleep,
    ):
        self._send_event = send_event
        self.hold_duration = hold_duration
        self._sleep = sleep

    async def press(self, key: Union[Key, str]) -> None:
        """Press and release a key using its tap or hold pattern."""
        key = get_key(key)
        key_usage = KEY_USAGES[key]
        if key_usage.hold:
            await self.hold(key_usage.usage_page, key_usage.usage)
        else:
            await self.tap(key_usage.usage_page, key_usage.usage)

    async def tap(self, usage_page: int, usage: int) -> None:
        """Send press immediately followed by release."""
        _LOGGER.debug("Tap usage page %d usage 0x%02X", usage_page, usage)
        await self._send_event(encode_hid_event(usage_page, usage, True))
        await self._send_event(encode_hid_event(usage_page, usage, False))

    async def hold(self, usage_page: int, usage: int) -> None:
        """Send press, wait the hold duration, then release."""
        _LOGGER.debug("Hold usage page %d usage 0x%02X for %.1fs", usage_page, usage, self.hold_duration)
        await self._send_event(encode_hid_event(usage_page, usage, True))
        await self._sleep(self.hold_duration)
        await self._send_event(encode_hid_event(usage_page, usage, False))
