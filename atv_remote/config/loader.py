"""Configuration loading with YAML support and env overrides."""

import importlib
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from ..exceptions import ConfigError
from .schema import (
    DEFAULT_CONFIG,
    DEFAULT_DEVICE_CONFIG,
    deep_merge,
    get_device_by_id_or_alias,
    get_device_id_by_alias,
)

_LOGGER = logging.getLogger(__name__)

# Config search paths (in priority order)
CONFIG_SEARCH_PATHS = [
    Path("config.yaml"),                                      # Current directory (primary)
    Path.home() / ".config" / "atv_remote" / "config.yaml",  # User home
    Path("/etc/atv_remote/config.yaml"),                      # System-wide
]


def _address_list(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


# Environment variable mappings
# Format: "ENV_VAR": ("section", "key", optional_converter)
ENV_MAPPINGS = {
    # Device settings (applied to default device)
    "ATV_HOST": ("_default_device", "addresses", _address_list),
    "ATV_PORT": ("_default_device", "port", int),
    "ATV_NAME": ("_default_device", "name"),
    # Options
    "ATV_BACKEND": ("options", "backend"),
    "ATV_POLL_INTERVAL": ("options", "poll_interval", float),
    "LOG_LEVEL": ("options", "log_level"),
}

# Module-level cached config
_cached_config: Optional[Dict] = None
_cached_path: Optional[Path] = None


def load_config(config_path: Optional[str] = None, use_cache: bool = True) -> Dict[str, Any]:
    """Load configuration from YAML file with environment overrides.

    Args:
        config_path: Explicit path to config file, or None to search
        use_cache: Use cached config if available

    Returns:
        Merged configuration dictionary
    """
    global _cached_config, _cached_path

    if use_cache and config_path is None and _cached_config is not None:
        return _cached_config

    config = _deep_copy_config(DEFAULT_CONFIG)
    loaded_path = None

    search_paths: List[Path] = []
    if config_path:
        search_paths.append(Path(config_path))
    search_paths.extend(CONFIG_SEARCH_PATHS)

    for path in search_paths:
        if path.suffix in (".yaml", ".yml") and path.exists():
            try:
                with open(path) as f:
                    user_config = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                _LOGGER.warning("Failed to load %s: %s", path, e)
                continue
            if not isinstance(user_config, dict):
                _LOGGER.warning("Ignoring %s: top level must be a mapping", path)
                continue
            config = deep_merge(config, user_config)
            loaded_path = path
            _LOGGER.info("Loaded config from %s", path)
            break

    config = _apply_env_overrides(config)

    config["_loaded_from"] = str(loaded_path) if loaded_path else None

    _cached_config = config
    _cached_path = loaded_path

    return config


def _deep_copy_config(config: Dict) -> Dict:
    """Create a deep copy of the config dict."""
    result = {}
    for key, value in config.items():
        if isinstance(value, dict):
            result[key] = _deep_copy_config(value)
        elif isinstance(value, list):
            result[key] = value.copy()
        else:
            result[key] = value
    return result


def _apply_env_overrides(config: Dict) -> Dict:
    """Apply environment variable overrides to config."""
    default_device_overrides = {}

    for env_var, mapping in ENV_MAPPINGS.items():
        value = os.environ.get(env_var)
        if value is None:
            continue

        section = mapping[0]
        key = mapping[1]
        converter = mapping[2] if len(mapping) > 2 else str

        try:
            converted_value = converter(value)
        except ValueError as e:
            _LOGGER.warning("Invalid env var %s=%s: %s", env_var, value, e)
            continue

        if section == "_default_device":
            default_device_overrides[key] = converted_value
        elif section in config:
            config[section][key] = converted_value
        else:
            _LOGGER.warning("Unknown config section: %s", section)

    if default_device_overrides:
        default_device = config.get("default_device")
        device_config = get_device_by_id_or_alias(config, default_device) if default_device else None
        if device_config is not None:
            device_config.update(default_device_overrides)
        elif default_device_overrides.get("addresses"):
            # Create a new device entry from env vars, keyed by its first address
            device_id = default_device_overrides["addresses"][0]
            config["devices"][device_id] = deep_merge(
                _deep_copy_config(DEFAULT_DEVICE_CONFIG),
                default_device_overrides,
            )
            config["default_device"] = device_id

    return config


def save_config(config: Dict, path: Optional[Path] = None) -> bool:
    """Save configuration to YAML file.

    Args:
        config: Configuration dictionary to save
        path: Destination path, or None for the loaded file (or ./config.yaml)

    Returns:
        True if saved successfully
    """
    if path is None:
        path = _cached_path or Path("config.yaml")

    # Remove internal metadata before saving
    save_data = {k: v for k, v in config.items() if not k.startswith("_")}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(save_data, f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        _LOGGER.error("Failed to save config: %s", e)
        return False

    _LOGGER.info("Saved config to %s", path)
    return True


def get_config(use_cache: bool = True) -> Dict:
    """Get current configuration (cached)."""
    return load_config(use_cache=use_cache)


def reload_config(config_path: Optional[str] = None) -> Dict:
    """Force reload configuration from disk."""
    global _cached_config, _cached_path
    _cached_config = None
    _cached_path = None
    return load_config(config_path, use_cache=False)


def get_config_path() -> Optional[Path]:
    """Get path of currently loaded config file."""
    load_config(use_cache=True)
    return _cached_path


def get_device_config(device_id: Optional[str] = None) -> Optional[Dict]:
    """Get configuration for a specific device.

    Args:
        device_id: Unique id or alias. If None, returns the default device.

    Returns:
        Device config dict (with its ``unique_id``) if found, None otherwise
    """
    config = get_config()
    devices = config.get("devices", {})

    if not devices:
        return None

    if device_id is None:
        device_id = config.get("default_device") or next(iter(devices))

    resolved = device_id if device_id in devices else get_device_id_by_alias(config, device_id)
    if resolved is None:
        return None

    return {"unique_id": resolved, **devices[resolved]}


def get_default_device() -> Optional[Dict]:
    """Get the default device configuration."""
    return get_device_config(None)


def list_devices() -> List[Dict]:
    """List all configured devices.

    Returns:
        List of dicts with unique_id, is_default and the device config
    """
    config = get_config()
    default_device = config.get("default_device")

    result = []
    for device_id, device_config in config.get("devices", {}).items():
        result.append({
            "unique_id": device_id,
            "is_default": device_id == default_device or (
                default_device is not None and device_config.get("alias") == default_device
            ),
            **device_config,
        })

    return result


def resolve_device_id(id_or_alias: str) -> Optional[str]:
    """Resolve an alias to a unique id."""
    config = get_config()
    if id_or_alias in config.get("devices", {}):
        return id_or_alias
    return get_device_id_by_alias(config, id_or_alias)


def add_device(
    device_id: str,
    addresses: List[str],
    port: Optional[int] = None,
    alias: Optional[str] = None,
    **kwargs,
) -> bool:
    """Add a device to the configuration.

    Args:
        device_id: Unique identifier of the device
        addresses: Candidate addresses
        port: Device port (default port if None)
        alias: Friendly name for CLI
        **kwargs: Additional device config fields

    Returns:
        True if saved successfully
    """
    config = get_config()

    device_config = _deep_copy_config(DEFAULT_DEVICE_CONFIG)
    device_config["addresses"] = list(addresses)
    if port is not None:
        device_config["port"] = port
    if alias:
        device_config["alias"] = alias
    device_config.update(kwargs)

    config["devices"][device_id] = device_config

    # Set as default if first device
    if len(config["devices"]) == 1:
        config["default_device"] = alias or device_id

    return save_config(config)


def remove_device(id_or_alias: str) -> bool:
    """Remove a device from the configuration."""
    config = get_config()
    device_id = resolve_device_id(id_or_alias)
    if device_id is None:
        _LOGGER.error("Device not found: %s", id_or_alias)
        return False

    alias = config["devices"][device_id].get("alias")
    del config["devices"][device_id]
    if config.get("default_device") in (device_id, alias):
        config["default_device"] = next(iter(config["devices"]), None)

    return save_config(config)


def set_default_device(id_or_alias: str) -> bool:
    """Set the default device.

    Returns:
        True if set successfully
    """
    config = get_config()

    if get_device_by_id_or_alias(config, id_or_alias) is None:
        _LOGGER.error("Device not found: %s", id_or_alias)
        return False

    config["default_device"] = id_or_alias
    return save_config(config)


def load_backend(path: Optional[str] = None) -> Any:
    """Import the collaborator backend named by an import path.

    Args:
        path: "package.module:attribute", or None to use options.backend.
            A class attribute is instantiated without arguments.

    Returns:
        Backend instance
    """
    if path is None:
        path = get_config().get("options", {}).get("backend")
    if not path:
        raise ConfigError("No backend configured. Set options.backend or ATV_BACKEND.")

    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ConfigError(f"Invalid backend path {path!r}, expected 'package.module:attribute'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigError(f"Could not import backend module {module_name!r}: {e}") from e

    try:
        backend = getattr(module, attribute)
    except AttributeError as e:
        raise ConfigError(f"Backend module {module_name!r} has no attribute {attribute!r}") from e

    if isinstance(backend, type):
        backend = backend()

    _LOGGER.debug("Loaded backend %s", path)
    return backend
