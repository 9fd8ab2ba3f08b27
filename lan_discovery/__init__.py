"""LAN peer discovery over IPv4 multicast."""

__version__ = "0.1.0"
