"""Discovery records and address selection.

Discovery itself (mDNS browsing) happens outside this package; callers hand
over the record they found. An appliance usually advertises several
addresses, so exactly one is picked here:

- a single address is used as-is
- otherwise the first IPv4 literal wins
- failing that, the first IPv6 literal that is not link-local (fe80...)
"""

import ipaddress
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .config import DEFAULT_PORT, LINK_LOCAL_PREFIX, TXT_UNIQUE_IDENTIFIER
from .exceptions import AddressSelectionError

_LOGGER = logging.getLogger(__name__)


@dataclass
class DiscoveredService:
    """A discovered appliance as reported by service discovery."""

    name: str
    addresses: List[str]
    port: int = DEFAULT_PORT
    txt: Dict[str, str] = field(default_factory=dict)

    @property
    def unique_id(self) -> Optional[str]:
        """Stable device identifier from the text record."""
        return self.txt.get(TXT_UNIQUE_IDENTIFIER)

    def __repr__(self) -> str:
        parts = [f"DiscoveredService({self.name!r}, addresses={self.addresses!r}, port={self.port}"]
        if self.unique_id:
            parts.append(f", unique_id={self.unique_id!r}")
        parts.append(")")
        return "".join(parts)


def _is_ipv4(address: str) -> bool:
    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return True


def _is_ipv6(address: str) -> bool:
    try:
        ipaddress.IPv6Address(address)
    except ValueError:
        return False
    return True


def select_address(addresses: Sequence[str]) -> str:
    """Pick the address to connect to from a discovery record.

    Args:
        addresses: Candidate addresses in advertised order

    Returns:
        The selected address

    Raises:
        AddressSelectionError: if no candidate is usable
    """
    if not addresses:
        raise AddressSelectionError("Discovery record has no addresses")

    if len(addresses) == 1:
        return addresses[0]

    for address in addresses:
        if _is_ipv4(address):
            return address

    for address in addresses:
        if _is_ipv6(address) and not address.lower().startswith(LINK_LOCAL_PREFIX):
            return address

    _LOGGER.debug("No usable address in %s", list(addresses))
    raise AddressSelectionError(
        f"No IPv4 or non link-local IPv6 address in {list(addresses)}"
    )
