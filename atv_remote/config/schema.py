"""Configuration schema, defaults, and validation."""

from typing import Any, Dict, List, Optional

from .constants import DEFAULT_CLIENT_NAME, DEFAULT_PORT, HOLD_DURATION, POLL_INTERVAL


# Default configuration for a single device
DEFAULT_DEVICE_CONFIG: Dict[str, Any] = {
    "name": None,                # Display name from discovery
    "addresses": [],             # Candidate addresses, first usable one wins
    "port": DEFAULT_PORT,
    "alias": None,               # Friendly name for CLI (--device alias)
}


# Full config structure with multi-device support
DEFAULT_CONFIG: Dict[str, Any] = {
    # Devices keyed by unique identifier
    "devices": {},

    # Default device for CLI when --device not specified (unique id or alias)
    "default_device": None,

    "options": {
        "backend": None,               # "package.module:attribute" import path
        "poll_interval": POLL_INTERVAL,
        "hold_duration": HOLD_DURATION,
        "client_name": DEFAULT_CLIENT_NAME,
        "log_level": "INFO",
    },
}


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Deep merge two dictionaries, override takes precedence.

    Args:
        base: Base dictionary
        override: Override dictionary (values take precedence)

    Returns:
        Merged dictionary
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        elif value is not None:  # Don't override with None
            result[key] = value
    return result


def validate_config(config: Dict, require_backend: bool = False) -> List[str]:
    """Validate configuration and return list of errors.

    Args:
        config: Configuration dictionary
        require_backend: If True, options.backend must be set

    Returns:
        List of error messages (empty if valid)
    """
    errors = []

    devices = config.get("devices", {})

    if not devices:
        errors.append("No devices configured in 'devices' section")
    else:
        for device_id, device_config in devices.items():
            addresses = device_config.get("addresses")
            if not addresses:
                errors.append(f"devices.{device_id}.addresses is required")
            elif not isinstance(addresses, list):
                errors.append(f"devices.{device_id}.addresses must be a list")
            port = device_config.get("port")
            if not isinstance(port, int) or not 0 < port < 65536:
                errors.append(f"devices.{device_id}.port must be a valid port number")

    options = config.get("options", {})
    backend = options.get("backend")
    if backend and ":" not in backend:
        errors.append("options.backend must look like 'package.module:attribute'")
    elif require_backend and not backend:
        errors.append("options.backend is required to connect")

    for key in ("poll_interval", "hold_duration"):
        value = options.get(key)
        if value is not None and (not isinstance(value, (int, float)) or value <= 0):
            errors.append(f"options.{key} must be a positive number")

    return errors


def get_device_by_id_or_alias(config: Dict, id_or_alias: str) -> Optional[Dict]:
    """Get device config by unique id or alias.

    Args:
        config: Full configuration dictionary
        id_or_alias: Unique id or alias to find

    Returns:
        Device config dict if found, None otherwise
    """
    devices = config.get("devices", {})

    if id_or_alias in devices:
        return devices[id_or_alias]

    for device_config in devices.values():
        if device_config.get("alias") == id_or_alias:
            return device_config

    return None


def get_device_id_by_alias(config: Dict, alias: str) -> Optional[str]:
    """Get the unique id for a given alias."""
    for device_id, device_config in config.get("devices", {}).items():
        if device_config.get("alias") == alias:
            return device_id
    return None
