"""Local IPv4 interface selection for the multicast sockets."""

import ipaddress
import logging
import socket

logger = logging.getLogger(__name__)


def score_address(ip: str) -> int:
    """Rank a candidate address; negative means unusable for multicast."""
    try:
        addr = ipaddress.IPv4Address(ip)
    except ValueError:
        return -1

    if addr.is_loopback or addr.is_link_local or addr.is_multicast or addr.is_unspecified:
        return -1
    if addr in ipaddress.IPv4Network("192.168.0.0/16"):
        return 100
    if addr in ipaddress.IPv4Network("172.16.0.0/12"):
        return 90
    if addr in ipaddress.IPv4Network("10.0.0.0/8"):
        return 80
    return 10


def _candidate_addresses() -> list[str]:
    candidates = []

    try:
        _, _, ips = socket.gethostbyname_ex(socket.gethostname())
        candidates.extend(ips)
    except OSError as e:
        logger.debug(f"Error resolving local IPs: {e}")

    # Connecting a UDP socket sends nothing, it only picks the outbound route
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as s:
            s.connect(("8.8.8.8", 80))
            candidates.append(s.getsockname()[0])
    except OSError as e:
        logger.debug(f"Route probe failed: {e}")

    return candidates


def select_local_ipv4(candidates: list[str] | None = None) -> str:
    """
    Pick the best non-loopback IPv4 address of this host.

    Private ranges win (192.168/16, then 172.16/12, then 10/8) over global
    addresses. Falls back to 127.0.0.1 when nothing usable exists.
    """
    if candidates is None:
        candidates = _candidate_addresses()

    best, best_score = None, -1
    for ip in candidates:
        score = score_address(ip)
        if score > best_score:
            best, best_score = ip, score

    if best is None:
        logger.warning("No usable IPv4 interface found, falling back to 127.0.0.1")
        return "127.0.0.1"
    return best


def parse_interface(ip: str) -> str:
    """
    Check a user supplied interface address.

    The address must be a concrete unicast IPv4 address, since the send socket
    binds to it and our own announcements are recognised by that address.
    """
    try:
        addr = ipaddress.IPv4Address(ip)
    except ValueError as e:
        raise ValueError(f"not an IPv4 address: {ip!r}") from e
    if addr.is_unspecified or addr.is_multicast or addr == ipaddress.IPv4Address("255.255.255.255"):
        raise ValueError(f"{ip} is not a unicast interface address")
    return str(addr)
