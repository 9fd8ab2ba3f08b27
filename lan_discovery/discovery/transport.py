"""
IPv4 multicast transport.

Two UDP sockets share the configured group/port: one bound to the chosen
interface for sending announcements, one bound to the group port for
receiving them. Both enable address reuse so several processes on the same
host can take part in discovery at once.
"""

import asyncio
import logging
import socket
import struct

from lan_discovery.config import MULTICAST_TTL, RECV_QUEUE_SIZE
from lan_discovery.discovery.errors import TransportError

logger = logging.getLogger(__name__)

_CLOSED = object()


class _SendProtocol(asyncio.DatagramProtocol):
    def error_received(self, exc: Exception) -> None:
        logger.warning(f"Multicast send error: {exc}")


class _ReceiveProtocol(asyncio.DatagramProtocol):
    """Queues received datagrams for MulticastTransport.receive()."""

    def __init__(self, queue: asyncio.Queue):
        self._queue = queue
        self.exc: Exception | None = None

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        try:
            self._queue.put_nowait((data, addr))
        except asyncio.QueueFull:
            logger.debug(f"Receive queue full, dropping datagram from {addr}")

    def error_received(self, exc: Exception) -> None:
        # Per-datagram errors; only connection_lost ends receive()
        logger.warning(f"Multicast receive error: {exc}")

    def connection_lost(self, exc: Exception | None) -> None:
        self.exc = exc
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(_CLOSED)


def _reuse(sock: socket.socket) -> None:
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    if hasattr(socket, "SO_REUSEPORT"):
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)


def _make_send_socket(interface: str, ttl: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        _reuse(sock)
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)
        # Loopback stays on so peers on this host hear each other
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 1)
        sock.bind((interface, 0))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_IF, socket.inet_aton(interface))
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


def _make_receive_socket(group: str, port: int, interface: str) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    try:
        _reuse(sock)
        sock.bind(("", port))
        mreq = struct.pack("4s4s", socket.inet_aton(group), socket.inet_aton(interface))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        sock.setblocking(False)
    except OSError:
        sock.close()
        raise
    return sock


class MulticastTransport:
    """Best-effort, unordered datagram channel on one multicast group."""

    def __init__(
        self,
        group: str,
        port: int,
        send_transport: asyncio.DatagramTransport,
        recv_transport: asyncio.DatagramTransport,
        recv_protocol: _ReceiveProtocol,
        queue: asyncio.Queue,
        local_address: tuple[str, int],
    ) -> None:
        self.group = group
        self.port = port
        self.local_address = local_address
        self._send_transport = send_transport
        self._recv_transport = recv_transport
        self._recv_protocol = recv_protocol
        self._queue = queue

    @classmethod
    async def open(
        cls, group: str, port: int, interface: str, ttl: int = MULTICAST_TTL
    ) -> "MulticastTransport":
        """Bind both sockets and join the group, raising TransportError on failure."""
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue(maxsize=RECV_QUEUE_SIZE)
        send_sock = recv_sock = None
        send_transport = None

        try:
            send_sock = _make_send_socket(interface, ttl)
            recv_sock = _make_receive_socket(group, port, interface)
            local_address = send_sock.getsockname()

            send_transport, _ = await loop.create_datagram_endpoint(
                _SendProtocol, sock=send_sock
            )
            recv_transport, recv_protocol = await loop.create_datagram_endpoint(
                lambda: _ReceiveProtocol(queue), sock=recv_sock
            )
        except OSError as e:
            if send_transport is not None:
                send_transport.close()
            elif send_sock is not None:
                send_sock.close()
            if recv_sock is not None:
                recv_sock.close()
            raise TransportError(
                f"cannot join {group}:{port} on interface {interface}: {e}"
            ) from e

        logger.info(
            f"Joined multicast group {group}:{port} on {interface} "
            f"(sending from {local_address[0]}:{local_address[1]}, ttl={ttl})"
        )
        return cls(group, port, send_transport, recv_transport, recv_protocol, queue, local_address)

    def send(self, payload: bytes) -> None:
        """Send one datagram to the group without waiting."""
        if self._send_transport.is_closing():
            raise TransportError("send socket is closed")
        try:
            self._send_transport.sendto(payload, (self.group, self.port))
        except OSError as e:
            raise TransportError(f"send to {self.group}:{self.port} failed: {e}") from e

    async def receive(self) -> tuple[bytes, tuple[str, int]]:
        """Wait for the next datagram; raises TransportError once the socket is gone."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Keep the marker so later calls fail the same way
            self._queue.put_nowait(_CLOSED)
            reason = self._recv_protocol.exc or "socket closed"
            raise TransportError(f"receive failed: {reason}")
        data, addr = item
        return data, addr

    def close(self) -> None:
        self._send_transport.close()
        self._recv_transport.close()
