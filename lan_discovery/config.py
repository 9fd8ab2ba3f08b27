"""Application-wide configuration constants."""

import os

# --- Identity ---
DEFAULT_NAME = os.getenv("LAN_DISCOVERY_NAME", "Player")
DEFAULT_SERVICE_PORT = int(os.getenv("LAN_DISCOVERY_SERVICE_PORT", "8080"))

# --- Multicast ---
MULTICAST_GROUP = os.getenv("LAN_DISCOVERY_GROUP", "239.255.255.250")
MULTICAST_PORT = int(os.getenv("LAN_DISCOVERY_PORT", "9999"))
MULTICAST_TTL = 1  # keep traffic on the local link
RECV_QUEUE_SIZE = 1024

# --- Timing (seconds) ---
ANNOUNCE_INTERVAL = float(os.getenv("LAN_DISCOVERY_ANNOUNCE_INTERVAL", "2"))
REPORT_INTERVAL = float(os.getenv("LAN_DISCOVERY_REPORT_INTERVAL", "5"))
PEER_TIMEOUT = float(os.getenv("LAN_DISCOVERY_PEER_TIMEOUT", "10"))

# --- API ---
API_HOST = os.getenv("LAN_DISCOVERY_API_HOST", "0.0.0.0")
