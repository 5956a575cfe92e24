"""Credential bundle produced by pairing.

The bundle identifies this client to the appliance across sessions:
- session_id: pairing identifier presented during introduction, reused on reconnect
- identifier: appliance identifier returned by pairing
- ltpk: appliance long-term public key
- ltsk: client long-term secret key

Verification derives a per-session read/write key pair from it. The derived
keys live on the bundle attached to a Device and are never serialized.

Text form (for storage and the command line):
    session_id:identifier:ltpk-hex:ltsk-hex
"""

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass
class Credentials:
    """Pairing credentials plus the derived session keys."""
    session_id: str
    identifier: str = ""
    ltpk: bytes = field(default=b"", repr=False)
    ltsk: bytes = field(default=b"", repr=False)
    read_key: Optional[bytes] = field(default=None, repr=False)
    write_key: Optional[bytes] = field(default=None, repr=False)

    @property
    def has_session_keys(self) -> bool:
        """True once verification stored both derived keys."""
        return self.read_key is not None and self.write_key is not None

    def with_session_keys(self, read_key: bytes, write_key: bytes) -> "Credentials":
        """Return a copy carrying the derived keys."""
        return replace(self, read_key=read_key, write_key=write_key)

    def without_session_keys(self) -> "Credentials":
        """Return a copy with the derived keys cleared."""
        return replace(self, read_key=None, write_key=None)

    def to_string(self) -> str:
        """Serialize the long-term part of the bundle."""
        return ":".join([self.session_id, self.identifier, self.ltpk.hex(), self.ltsk.hex()])

    @classmethod
    def parse(cls, text: str) -> "Credentials":
        """Parse the text form produced by to_string().

        Raises:
            ValueError: if the text is malformed
        """
        parts = text.strip().split(":")
        if len(parts) != 4:
            raise ValueError(f"Invalid credentials: expected 4 fields, got {len(parts)}")

        session_id, identifier, ltpk, ltsk = parts
        if not session_id:
            raise ValueError("Invalid credentials: empty session id")

        return cls(
            session_id=session_id,
            identifier=identifier,
            ltpk=bytes.fromhex(ltpk),
            ltsk=bytes.fromhex(ltsk),
        )
