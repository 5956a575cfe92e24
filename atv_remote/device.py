"""A reachable appliance."""

import uuid
from typing import Optional

from .config import DEFAULT_PORT
from .credentials import Credentials
from .discovery import DiscoveredService, select_address


class Device:
    """One appliance endpoint.

    The address is fixed at construction. The session id is generated once
    and replaced only when stored credentials are restored on connect.
    """

    def __init__(
        self,
        name: str,
        address: str,
        port: int = DEFAULT_PORT,
        unique_id: Optional[str] = None,
        session_id: Optional[str] = None,
        credentials: Optional[Credentials] = None,
    ):
        self.name = name
        self._address = address
        self.port = port
        self.unique_id = unique_id
        self.session_id = session_id or str(uuid.uuid4()).upper()
        self.credentials = credentials

    @property
    def address(self) -> str:
        """Selected address."""
        return self._address

    @classmethod
    def from_service(cls, service: DiscoveredService) -> "Device":
        """Build a device from a discovery record.

        Raises:
            AddressSelectionError: if the record has no usable address
        """
        return cls(
            name=service.name,
            address=select_address(service.addresses),
            port=service.port,
            unique_id=service.unique_id,
        )

    def __repr__(self) -> str:
        return f"Device({self.name!r}, {self._address}:{self.port}, unique_id={self.unique_id!r})"
