"""All constants for atv_remote - single source of truth.

Consolidates values used by:
- client.py (introduction metadata, wait timeout)
- poller.py (refresh period, playback queue request)
- hid.py (hold duration)
- storage.py (credential file name)
"""

# === Network ===
DEFAULT_PORT = 49152          # Typical MRP port advertised over mDNS
LINK_LOCAL_PREFIX = "fe80"    # IPv6 link-local addresses are skipped

# === Discovery text record ===
TXT_UNIQUE_IDENTIFIER = "UniqueIdentifier"

# === Timing (seconds) ===
DEFAULT_WAIT_TIMEOUT = 5.0    # wait_for_type default
POLL_INTERVAL = 5.0           # Playback queue refresh period
HOLD_DURATION = 2.0           # Dwell between down and up for held keys

# === Playback queue refresh ===
POLL_QUEUE_LENGTH = 100
POLL_QUEUE_LOCATION = 0
POLL_ARTWORK_WIDTH = -1
POLL_ARTWORK_HEIGHT = 368

# === Device introduction ===
DEFAULT_CLIENT_NAME = "atv-remote"
INTRODUCTION_INFO = {
    "localizedModelName": "iPhone",
    "systemBuildVersion": "17C54",
    "applicationBundleIdentifier": "com.apple.TVRemote",
    "applicationBundleVersion": "344.28",
    "protocolVersion": 1,
    "allowsPairing": True,
    "lastSupportedMessageType": 45,
    "supportsSystemPairing": True,
}

# === Storage ===
DEFAULT_CREDENTIALS_FILENAME = "credentials.json"
