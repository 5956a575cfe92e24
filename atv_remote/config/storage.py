"""Credential storage for persistent pairing.

Stores pairing credentials keyed by device unique identifier, so a later
connect can restore the original session identity.
"""

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..credentials import Credentials
from .constants import DEFAULT_CREDENTIALS_FILENAME

_LOGGER = logging.getLogger(__name__)


class CredentialStorage:
    """Manages persistent storage of pairing credentials per device."""

    DEFAULT_STORAGE_PATH = Path.home() / ".config" / "atv_remote" / DEFAULT_CREDENTIALS_FILENAME

    def __init__(self, storage_path: Optional[Path] = None):
        """Initialize credential storage.

        Args:
            storage_path: Path to storage file. Defaults to
                ~/.config/atv_remote/credentials.json
        """
        self.storage_path = Path(storage_path) if storage_path else self.DEFAULT_STORAGE_PATH

    def _load_all(self) -> Dict[str, Any]:
        """Load all stored entries."""
        if not self.storage_path.exists():
            return {}
        try:
            with open(self.storage_path, "r") as f:
                return json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            _LOGGER.warning("Could not read %s: %s", self.storage_path, e)
            return {}

    def _save_all(self, data: Dict[str, Any]):
        """Save all entries to storage."""
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.storage_path, "w") as f:
            json.dump(data, f, indent=2)

    def get_credentials(self, unique_id: str) -> Optional[Credentials]:
        """Get stored credentials for a device.

        Returns:
            Credentials, or None if nothing (valid) is stored
        """
        entry = self._load_all().get(unique_id)
        if not entry or not entry.get("credentials"):
            return None

        try:
            return Credentials.parse(entry["credentials"])
        except ValueError as e:
            _LOGGER.warning("Stored credentials for %s are invalid: %s", unique_id, e)
            return None

    def save_credentials(
        self,
        unique_id: str,
        credentials: Credentials,
        name: Optional[str] = None,
        address: Optional[str] = None,
        port: Optional[int] = None,
    ):
        """Save credentials for a device.

        Args:
            unique_id: Device unique identifier - used as storage key
            credentials: Bundle returned by pairing
            name: Device display name
            address: Address used when pairing
            port: Port used when pairing
        """
        data = self._load_all()
        data[unique_id] = {
            "unique_id": unique_id,
            "credentials": credentials.to_string(),
            "paired_at": time.time(),
            "name": name,
            "address": address,
            "port": port,
        }
        self._save_all(data)
        _LOGGER.debug("Saved credentials for %s", unique_id)

    def delete_credentials(self, unique_id: str) -> bool:
        """Delete stored credentials for a device.

        Returns:
            True if an entry was removed
        """
        data = self._load_all()
        if unique_id not in data:
            return False
        del data[unique_id]
        self._save_all(data)
        return True

    def list_devices(self) -> List[Dict[str, Any]]:
        """List all devices with stored credentials."""
        devices = []
        for key, entry in self._load_all().items():
            devices.append({
                "unique_id": entry.get("unique_id", key),
                "name": entry.get("name"),
                "address": entry.get("address"),
                "port": entry.get("port"),
                "paired_at": entry.get("paired_at"),
            })
        return devices

    def clear_all(self):
        """Clear all stored credentials."""
        self._save_all({})


# Global default storage instance
_default_storage: Optional[CredentialStorage] = None


def get_storage(storage_path: Optional[Path] = None) -> CredentialStorage:
    """Get the default credential storage instance."""
    global _default_storage
    if _default_storage is None or storage_path is not None:
        _default_storage = CredentialStorage(storage_path)
    return _default_storage
