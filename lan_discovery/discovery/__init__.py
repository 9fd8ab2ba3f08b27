"""Multicast announce/listen/expire engine."""

from lan_discovery.discovery.errors import DecodeError, DiscoveryError, TransportError
from lan_discovery.discovery.models import Announcement, Peer
from lan_discovery.discovery.registry import PeerRegistry
from lan_discovery.discovery.service import DiscoveryService

__all__ = [
    "Announcement",
    "DecodeError",
    "DiscoveryError",
    "DiscoveryService",
    "Peer",
    "PeerRegistry",
    "TransportError",
]
