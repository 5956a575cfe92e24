#!/usr/bin/env python3
"""Command-line interface for Apple TV remote control."""

import argparse
import asyncio
import logging
import sys
import time
from typing import Awaitable, Callable, List, Optional

from . import __version__
from .client import AppleTV
from .config import (
    DEFAULT_CLIENT_NAME,
    DEFAULT_PORT,
    HOLD_DURATION,
    POLL_INTERVAL,
    TXT_UNIQUE_IDENTIFIER,
    add_device,
    get_config,
    get_device_config,
    get_storage,
    list_devices,
    load_backend,
    load_config,
    remove_device,
    set_default_device,
    validate_config,
)
from .discovery import DiscoveredService
from .exceptions import AtvError, UnknownKeyError
from .keys import KEY_NAME_MAP, KEY_USAGES, Key, get_key
from .models import Command

_LOGGER = logging.getLogger(__name__)


def setup_logging(level: str = "INFO"):
    """Set up logging configuration."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def create_client(device_id: Optional[str] = None) -> AppleTV:
    """Create a session for a configured device.

    Args:
        device_id: Unique id or alias. Uses the default device if not provided.

    Returns:
        AppleTV session (not yet connected)

    Raises:
        ValueError: if the device is not configured
        AtvError: if no address is usable or the backend cannot be loaded
    """
    device_config = get_device_config(device_id)

    if not device_config:
        if device_id:
            raise ValueError(f"Device '{device_id}' not found. Use 'atv config list' to see available devices.")
        raise ValueError("No default device configured. Use 'atv config add' to add a device.")

    unique_id = device_config["unique_id"]
    service = DiscoveredService(
        name=device_config.get("name") or unique_id,
        addresses=list(device_config.get("addresses") or []),
        port=device_config.get("port") or DEFAULT_PORT,
        txt={TXT_UNIQUE_IDENTIFIER: unique_id},
    )

    options = get_config().get("options", {})
    return AppleTV.from_service(
        service,
        load_backend(),
        client_name=options.get("client_name") or DEFAULT_CLIENT_NAME,
        poll_interval=options.get("poll_interval") or POLL_INTERVAL,
        hold_duration=options.get("hold_duration") or HOLD_DURATION,
    )


def _storage_key(atv: AppleTV) -> str:
    return atv.unique_id or atv.address


def _run_session(
    args,
    action: Callable[[AppleTV], Awaitable[int]],
    authenticated: bool = True,
) -> int:
    """Connect, run an action and disconnect.

    Args:
        args: Parsed arguments (uses args.device)
        action: Coroutine function taking the connected session, returning an exit code
        authenticated: Connect with stored credentials if there are any

    Returns:
        Exit code
    """
    try:
        atv = create_client(getattr(args, "device", None))
    except (ValueError, AtvError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    credentials = None
    if authenticated:
        credentials = get_storage().get_credentials(_storage_key(atv))
        if credentials is None:
            _LOGGER.warning("No stored credentials for %s. Run 'atv pair' first.", atv.name)

    async def session() -> int:
        await atv.connect(credentials)
        try:
            return await action(atv)
        finally:
            atv.disconnect()

    try:
        return asyncio.run(session())
    except AtvError as e:
        _LOGGER.error("%s", e)
        print(f"Failed: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 0


def cmd_keys(args):
    """List available keys."""
    print("Available keys:")
    print()

    categories = {
        "Navigation": [Key.UP, Key.DOWN, Key.LEFT, Key.RIGHT, Key.SELECT],
        "Menu": [Key.MENU, Key.TOP_MENU],
        "Playback": [Key.PLAY, Key.PAUSE, Key.NEXT, Key.PREVIOUS],
        "Power/Home": [Key.SUSPEND, Key.TV, Key.LONG_TV],
    }

    for cat, keys in categories.items():
        print(f"  {cat}:")
        for key in keys:
            aliases = sorted(name for name, k in KEY_NAME_MAP.items() if k is key and name != key.value)
            alias_str = f" ({', '.join(aliases)})" if aliases else ""
            hold_str = " [hold]" if KEY_USAGES[key].hold else ""
            print(f"    {key.value:12}{hold_str}{alias_str}")
    return 0


def cmd_key(args):
    """Send a key press."""
    try:
        key = get_key(args.key)
    except UnknownKeyError:
        print(f"Unknown key '{args.key}'. Use 'atv keys' to list available keys.", file=sys.stderr)
        return 1

    async def press(atv: AppleTV) -> int:
        for _ in range(args.repeat):
            await atv.press_key(key)
        print(f"Sent: {key.value}" + (f" x{args.repeat}" if args.repeat > 1 else ""))
        return 0

    return _run_session(args, press)


def cmd_pair(args):
    """Pair with a device and store the credentials."""

    async def pair(atv: AppleTV) -> int:
        credentials = await atv.pair()
        get_storage().save_credentials(
            _storage_key(atv),
            credentials,
            name=atv.name,
            address=atv.address,
            port=atv.port,
        )
        print(f"Paired with {atv.name}. Credentials saved.")
        if args.show:
            print(credentials.to_string())
        return 0

    return _run_session(args, pair, authenticated=False)


def _format_commands(commands) -> str:
    names = []
    for supported in commands:
        if not supported.enabled:
            continue
        command = supported.command
        names.append(command.name.lower() if isinstance(command, Command) else str(command))
    return ", ".join(names) or "(none)"


def cmd_watch(args):
    """Print now playing updates until interrupted."""

    async def watch(atv: AppleTV) -> int:
        closed = asyncio.get_running_loop().create_future()

        def on_now_playing(info):
            print(f"Now playing: {info}" if info is not None else "Now playing: (nothing)")

        def on_supported_commands(commands):
            print(f"Supported commands: {_format_commands(commands)}")

        def on_close(*_):
            if not closed.done():
                closed.set_result(None)

        def on_error(error):
            print(f"Error: {error}", file=sys.stderr)

        atv.on("nowPlaying", on_now_playing)
        atv.on("supportedCommands", on_supported_commands)
        atv.on("error", on_error)
        atv.once("close", on_close)

        print(f"Watching {atv.name}. Press Ctrl+C to stop.")
        try:
            await asyncio.wait_for(closed, timeout=args.duration)
        except asyncio.TimeoutError:
            pass
        finally:
            atv.remove_all_listeners()
        return 0

    return _run_session(args, watch)


def cmd_wake(args):
    """Wake the device."""

    async def wake(atv: AppleTV) -> int:
        await atv.wake()
        print(f"Wake sent to {atv.name}")
        return 0

    return _run_session(args, wake)


def cmd_config(args):
    """View or change configuration."""
    if args.action == "show":
        config = get_config()
        devices = list_devices()

        print(f"Config file: {config.get('_loaded_from') or '(defaults)'}")
        options = config.get("options", {})
        print(f"Backend:     {options.get('backend') or '(not set)'}")

        if not devices:
            print("No devices configured. Use 'atv config add <unique_id> <address>' to add one.")
            return 0

        print("Configured devices:")
        for device in devices:
            is_default = " (default)" if device["is_default"] else ""
            alias = device.get("alias")
            alias_str = f" [{alias}]" if alias else ""
            name = device.get("name")
            name_str = f" - {name}" if name else ""

            print(f"\n  {device['unique_id']}{alias_str}{is_default}{name_str}")
            print(f"    Addresses: {', '.join(device.get('addresses') or []) or '(not set)'}")
            print(f"    Port:      {device.get('port', DEFAULT_PORT)}")

        errors = validate_config(config)
        if errors:
            print()
            for error in errors:
                print(f"Config error: {error}", file=sys.stderr)

    elif args.action == "list":
        devices = list_devices()
        if not devices:
            print("No devices configured.")
            return 0
        print("Configured devices:")
        for device in devices:
            alias = device.get("alias")
            alias_str = f" ({alias})" if alias else ""
            print(f"  {device['unique_id']}{alias_str}")

    elif args.action == "add":
        if not args.value or not args.address:
            print("Please provide id and address: atv config add <unique_id> --address 10.0.0.5", file=sys.stderr)
            return 1
        extra = {"name": args.name} if args.name else {}
        if not add_device(args.value, args.address, port=args.port, alias=args.alias, **extra):
            print("Failed to save configuration", file=sys.stderr)
            return 1
        print(f"Added device {args.value}")
        if args.alias:
            print(f"  Alias: {args.alias}")
        print("Use 'atv pair' to pair with this device.")

    elif args.action == "remove":
        if not args.value:
            print("Please provide device id or alias: atv config remove living_room", file=sys.stderr)
            return 1
        if not remove_device(args.value):
            print(f"Device '{args.value}' not found", file=sys.stderr)
            return 1
        print(f"Removed device {args.value}")

    elif args.action == "set-default":
        if not args.value:
            print("Please provide device id or alias: atv config set-default living_room", file=sys.stderr)
            return 1
        if not set_default_device(args.value):
            print(f"Device '{args.value}' not found", file=sys.stderr)
            return 1
        print(f"Default device set to: {args.value}")

    return 0


def cmd_credentials(args):
    """List or delete stored credentials."""
    storage = get_storage()

    if args.action == "list":
        devices = storage.list_devices()
        if not devices:
            print("No stored credentials.")
            return 0
        print("Paired devices:")
        for device in devices:
            paired_at = device.get("paired_at")
            paired_str = time.strftime("%Y-%m-%d %H:%M", time.localtime(paired_at)) if paired_at else "unknown"
            print(f"  {device['unique_id']} - {device.get('name') or '(unnamed)'}")
            print(f"    Address: {device.get('address')}:{device.get('port')}")
            print(f"    Paired:  {paired_str}")

    elif args.action == "delete":
        target = args.value or getattr(args, "device", None)
        if not target:
            print("Please provide device id: atv credentials delete <unique_id>", file=sys.stderr)
            return 1
        device_config = get_device_config(target)
        unique_id = device_config["unique_id"] if device_config else target
        if not storage.delete_credentials(unique_id):
            print(f"No stored credentials for {unique_id}", file=sys.stderr)
            return 1
        print(f"Deleted credentials for {unique_id}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="atv",
        description="Control an Apple TV from the command line",
    )
    parser.add_argument("--device", "-d", help="Device ID or alias (uses default device if not specified)")
    parser.add_argument("--config", "-c", help="Path to config file (default: config.yaml)")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--version", "-v", action="version", version=f"atv-remote {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Keys list
    p_keys = subparsers.add_parser("keys", help="List available keys")
    p_keys.set_defaults(func=cmd_keys)

    # Key
    p_key = subparsers.add_parser("key", help="Send a key press")
    p_key.add_argument("key", help="Key name (e.g., up, select, play, topmenu)")
    p_key.add_argument("--repeat", "-r", type=int, default=1, help="Number of presses (default: 1)")
    p_key.set_defaults(func=cmd_key)

    # Pairing
    p_pair = subparsers.add_parser("pair", help="Pair with a device")
    p_pair.add_argument("--show", action="store_true", help="Print the credentials after pairing")
    p_pair.set_defaults(func=cmd_pair)

    # Watch
    p_watch = subparsers.add_parser("watch", help="Print now playing updates")
    p_watch.add_argument("--duration", "-t", type=float, help="Stop after this many seconds")
    p_watch.set_defaults(func=cmd_watch)

    # Wake
    p_wake = subparsers.add_parser("wake", help="Wake the device")
    p_wake.set_defaults(func=cmd_wake)

    # Config
    p_cfg = subparsers.add_parser("config", help="View or change configuration")
    p_cfg.add_argument(
        "action",
        choices=["show", "list", "add", "remove", "set-default"],
        nargs="?",
        default="show",
        help="show: display all devices, list: list device IDs, add: add device, "
             "remove: remove device, set-default: set default device"
    )
    p_cfg.add_argument("value", nargs="?", help="Device ID or alias")
    p_cfg.add_argument("--address", "-a", action="append", help="Device address (repeat for several)")
    p_cfg.add_argument("--port", "-p", type=int, help="Device port")
    p_cfg.add_argument("--alias", help="Alias when adding a device")
    p_cfg.add_argument("--name", help="Display name when adding a device")
    p_cfg.set_defaults(func=cmd_config)

    # Credentials
    p_creds = subparsers.add_parser("credentials", aliases=["creds"], help="Manage stored credentials")
    p_creds.add_argument("action", choices=["list", "delete"], nargs="?", default="list")
    p_creds.add_argument("value", nargs="?", help="Device ID or alias")
    p_creds.set_defaults(func=cmd_credentials)

    return parser


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    log_level = "DEBUG" if args.debug else config.get("options", {}).get("log_level", "INFO")
    setup_logging(log_level)

    if not args.command:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
