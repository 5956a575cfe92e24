"""Configuration management for atv_remote.

Provides:
- YAML-based configuration with environment variable overrides
- Multi-device support keyed by device unique identifier
- Persistent credential storage
- Single source of truth for all constants
"""

from .constants import (
    DEFAULT_PORT,
    LINK_LOCAL_PREFIX,
    TXT_UNIQUE_IDENTIFIER,
    DEFAULT_WAIT_TIMEOUT,
    POLL_INTERVAL,
    HOLD_DURATION,
    POLL_QUEUE_LENGTH,
    POLL_QUEUE_LOCATION,
    POLL_ARTWORK_WIDTH,
    POLL_ARTWORK_HEIGHT,
    DEFAULT_CLIENT_NAME,
    INTRODUCTION_INFO,
    DEFAULT_CREDENTIALS_FILENAME,
)

from .schema import (
    DEFAULT_CONFIG,
    DEFAULT_DEVICE_CONFIG,
    deep_merge,
    validate_config,
    get_device_by_id_or_alias,
    get_device_id_by_alias,
)

from .loader import (
    load_config,
    save_config,
    get_config,
    reload_config,
    get_config_path,
    get_device_config,
    get_default_device,
    list_devices,
    resolve_device_id,
    add_device,
    remove_device,
    set_default_device,
    load_backend,
    CONFIG_SEARCH_PATHS,
)

from .storage import (
    CredentialStorage,
    get_storage,
)


__all__ = [
    # Constants
    "DEFAULT_PORT",
    "LINK_LOCAL_PREFIX",
    "TXT_UNIQUE_IDENTIFIER",
    "DEFAULT_WAIT_TIMEOUT",
    "POLL_INTERVAL",
    "HOLD_DURATION",
    "POLL_QUEUE_LENGTH",
    "POLL_QUEUE_LOCATION",
    "POLL_ARTWORK_WIDTH",
    "POLL_ARTWORK_HEIGHT",
    "DEFAULT_CLIENT_NAME",
    "INTRODUCTION_INFO",
    "DEFAULT_CREDENTIALS_FILENAME",
    # Schema
    "DEFAULT_CONFIG",
    "DEFAULT_DEVICE_CONFIG",
    "deep_merge",
    "validate_config",
    "get_device_by_id_or_alias",
    "get_device_id_by_alias",
    # Loader
    "load_config",
    "save_config",
    "get_config",
    "reload_config",
    "get_config_path",
    "get_device_config",
    "get_default_device",
    "list_devices",
    "resolve_device_id",
    "add_device",
    "remove_device",
    "set_default_device",
    "load_backend",
    "CONFIG_SEARCH_PATHS",
    # Storage
    "CredentialStorage",
    "get_storage",
]
