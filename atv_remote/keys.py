"""Remote key constants.

Each key is sent as a HID event. The usage page / usage pairs come from the
USB HID usage tables: page 1 is Generic Desktop, page 12 (0x0C) is Consumer.
Held keys keep the button down for a dwell interval before releasing.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

from .exceptions import UnknownKeyError


class Key(Enum):
    """Remote control keys."""
    # Navigation
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    SELECT = "select"
    # Menu
    MENU = "menu"
    TOP_MENU = "topmenu"
    # Playback
    PLAY = "play"
    PAUSE = "pause"
    NEXT = "next"
    PREVIOUS = "previous"
    # Power/Home
    SUSPEND = "suspend"
    TV = "tv"
    LONG_TV = "longtv"


@dataclass(frozen=True)
class KeyUsage:
    """HID usage for a key and whether it is held."""
    usage_page: int
    usage: int
    hold: bool = False


# Usage page 1: Generic Desktop
PAGE_GENERIC_DESKTOP = 1
# Usage page 12: Consumer
PAGE_CONSUMER = 12

KEY_USAGES: Dict[Key, KeyUsage] = {
    Key.UP: KeyUsage(PAGE_GENERIC_DESKTOP, 0x8C),
    Key.DOWN: KeyUsage(PAGE_GENERIC_DESKTOP, 0x8D),
    Key.LEFT: KeyUsage(PAGE_GENERIC_DESKTOP, 0x8B),
    Key.RIGHT: KeyUsage(PAGE_GENERIC_DESKTOP, 0x8A),
    Key.MENU: KeyUsage(PAGE_GENERIC_DESKTOP, 0x86),
    Key.PLAY: KeyUsage(PAGE_CONSUMER, 0xB0),
    Key.PAUSE: KeyUsage(PAGE_CONSUMER, 0xB1),
    Key.NEXT: KeyUsage(PAGE_CONSUMER, 0xB5),
    Key.PREVIOUS: KeyUsage(PAGE_CONSUMER, 0xB6),
    Key.SUSPEND: KeyUsage(PAGE_GENERIC_DESKTOP, 0x82),
    Key.SELECT: KeyUsage(PAGE_GENERIC_DESKTOP, 0x89),
    Key.LONG_TV: KeyUsage(PAGE_CONSUMER, 0x60, hold=True),
    Key.TV: KeyUsage(PAGE_CONSUMER, 0x60),
    Key.TOP_MENU: KeyUsage(PAGE_GENERIC_DESKTOP, 0x86, hold=True),
}

# All keys for reference
ALL_KEYS = list(Key)

# Key name mapping for CLI
KEY_NAME_MAP = {
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "select": Key.SELECT,
    "ok": Key.SELECT,
    "enter": Key.SELECT,
    "menu": Key.MENU,
    "back": Key.MENU,
    "topmenu": Key.TOP_MENU,
    "top_menu": Key.TOP_MENU,
    "play": Key.PLAY,
    "pause": Key.PAUSE,
    "next": Key.NEXT,
    "previous": Key.PREVIOUS,
    "prev": Key.PREVIOUS,
    "suspend": Key.SUSPEND,
    "sleep": Key.SUSPEND,
    "tv": Key.TV,
    "home": Key.TV,
    "longtv": Key.LONG_TV,
    "long_tv": Key.LONG_TV,
}


def get_key(name: Union[str, Key]) -> Key:
    """Get key from friendly name.

    Args:
        name: Key name (e.g., 'up', 'topmenu', 'long_tv') or a Key

    Returns:
        Key member

    Raises:
        UnknownKeyError: if the name does not map to a key
    """
    if isinstance(name, Key):
        return name

    name_lower = name.lower().strip().replace("-", "_")
    if name_lower in KEY_NAME_MAP:
        return KEY_NAME_MAP[name_lower]

    # Enum member name, e.g. "TOP_MENU"
    try:
        return Key[name_lower.upper()]
    except KeyError:
        raise UnknownKeyError(name) from None
