"""Error types raised by the discovery engine."""


class DiscoveryError(Exception):
    """Base class for discovery failures."""


class TransportError(DiscoveryError):
    """The multicast socket could not be opened, joined, or used."""


class DecodeError(DiscoveryError):
    """A received datagram is not a valid announcement."""
