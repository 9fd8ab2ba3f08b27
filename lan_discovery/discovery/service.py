"""
Multicast LAN discovery service.

Announces this process on the multicast group at a fixed cadence, listens
for announcements from other participants, and periodically expires and
reports the peers that are still alive.
"""

import asyncio
import logging
import time

from lan_discovery.config import (
    ANNOUNCE_INTERVAL,
    DEFAULT_NAME,
    DEFAULT_SERVICE_PORT,
    MULTICAST_GROUP,
    MULTICAST_PORT,
    PEER_TIMEOUT,
    REPORT_INTERVAL,
)
from lan_discovery.discovery.codec import decode_announcement, encode_announcement
from lan_discovery.discovery.errors import DecodeError, TransportError
from lan_discovery.discovery.interfaces import select_local_ipv4
from lan_discovery.discovery.models import Announcement, Peer, make_peer_id
from lan_discovery.discovery.registry import PeerRegistry
from lan_discovery.discovery.transport import MulticastTransport

logger = logging.getLogger(__name__)


class DiscoveryService:
    """Runs the announce, listen and report loops over one shared registry."""

    def __init__(
        self,
        name: str = DEFAULT_NAME,
        service_port: int = DEFAULT_SERVICE_PORT,
        interface: str | None = None,
        group: str = MULTICAST_GROUP,
        port: int = MULTICAST_PORT,
        announce_interval: float = ANNOUNCE_INTERVAL,
        report_interval: float = REPORT_INTERVAL,
        peer_timeout: float = PEER_TIMEOUT,
        registry: PeerRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else PeerRegistry()
        self.group = group
        self.port = port
        self.announce_interval = announce_interval
        self.report_interval = report_interval
        self.peer_timeout = peer_timeout

        self._name = name
        self._service_port = service_port
        self._interface = interface
        self._transport: MulticastTransport | None = None
        self._tasks: list[asyncio.Task] = []
        self._on_peer_change: list = []  # callbacks: async def fn(event, peer)
        self._callback_tasks: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, name: str) -> None:
        self._name = name

    @property
    def service_port(self) -> int:
        return self._service_port

    @service_port.setter
    def service_port(self, port: int) -> None:
        if not 0 <= port <= 65535:
            raise ValueError(f"service port out of range: {port}")
        self._service_port = port

    @property
    def self_id(self) -> str | None:
        """PeerId our own announcements arrive with, once the transport is open."""
        if self._transport is None:
            return None
        return make_peer_id(self._transport.local_address)

    def is_self(self, peer: Peer) -> bool:
        return peer.peer_id == self.self_id

    def on_peer_change(self, callback) -> None:
        """Register a callback for peer_discovered / peer_lost events."""
        self._on_peer_change.append(callback)

    async def start(self, transport: MulticastTransport | None = None) -> None:
        """
        Open the multicast transport and spawn the three discovery tasks.

        Raises TransportError if the group cannot be joined; discovery is
        impossible without it.
        """
        if transport is None:
            interface = self._interface or select_local_ipv4()
            logger.info(f"Local interface: {interface}")
            transport = await MulticastTransport.open(self.group, self.port, interface)
        self._transport = transport

        self._tasks = [
            asyncio.create_task(self._announce_loop(), name="announcer"),
            asyncio.create_task(self._listen_loop(), name="listener"),
            asyncio.create_task(self._report_loop(), name="reporter"),
        ]
        for task in self._tasks:
            task.add_done_callback(self._task_done)

        logger.info(f"LAN discovery started for {self._name} (service port {self._service_port})")

    async def stop(self) -> None:
        """Cancel the discovery tasks and close the sockets."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

        pending = list(self._callback_tasks)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        if self._transport:
            self._transport.close()
        logger.info("Discovery service stopped")

    async def wait(self) -> None:
        """Block until every discovery task has finished."""
        await asyncio.gather(*self._tasks, return_exceptions=True)

    def _task_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Discovery task {task.get_name()} crashed: {exc!r}", exc_info=exc)
        else:
            logger.warning(f"Discovery task {task.get_name()} exited")

    def _emit(self, event: str, peer: Peer) -> None:
        """Run every peer change callback in its own task; loops never wait on them."""
        for cb in self._on_peer_change:
            task = asyncio.create_task(cb(event, peer))
            self._callback_tasks.add(task)
            task.add_done_callback(self._callback_done)

    def _callback_done(self, task: asyncio.Task) -> None:
        self._callback_tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Peer change callback error: {exc!r}")

    # --- Announcer ---

    def build_announcement(self) -> Announcement:
        return Announcement(name=self._name, port=self._service_port)

    def announce_once(self) -> None:
        self._transport.send(encode_announcement(self.build_announcement()))

    async def _announce_loop(self) -> None:
        """Send our announcement every announce_interval seconds."""
        while True:
            try:
                self.announce_once()
            except TransportError as e:
                logger.warning(f"Announce failed: {e}")
            await asyncio.sleep(self.announce_interval)

    # --- Listener ---

    async def handle_datagram(
        self, data: bytes, addr: tuple[str, int], now: float | None = None
    ) -> Peer | None:
        """Decode one datagram and record its sender. Invalid payloads are dropped."""
        try:
            announcement = decode_announcement(data)
        except DecodeError as e:
            logger.debug(f"Ignoring invalid announcement from {addr[0]}:{addr[1]}: {e}")
            return None

        if now is None:
            now = time.monotonic()
        peer, is_new = await self.registry.upsert(
            make_peer_id(addr), announcement.name, announcement.port, now, addr
        )

        if is_new and not self.is_self(peer):
            logger.info(
                f"Discovered peer: {peer.name} ({peer.ip_address}:{peer.source_port}, "
                f"service port {peer.port})"
            )
            self._emit("peer_discovered", peer)
        return peer

    async def _listen_loop(self) -> None:
        """Feed every received datagram into the registry until the socket breaks."""
        while True:
            try:
                data, addr = await self._transport.receive()
            except TransportError as e:
                # Existing peers keep expiring normally; nothing new is learned
                logger.error(f"Listener stopped, no new peers will be discovered: {e}")
                return
            await self.handle_datagram(data, addr)

    # --- Reporter ---

    async def report(self, now: float | None = None) -> list[Peer]:
        """Expire stale peers, log the rest, and return them (self excluded)."""
        if now is None:
            now = time.monotonic()
        alive, evicted = await self.registry.evict_and_snapshot(now, self.peer_timeout)

        for peer in evicted:
            if self.is_self(peer):
                continue
            logger.info(f"Peer lost: {peer.name} ({peer.ip_address}:{peer.source_port})")
            self._emit("peer_lost", peer)

        peers = [p for p in alive if not self.is_self(p)]
        if not peers:
            logger.debug(f"{self._name} sees no peers")
            return peers

        logger.info(f"{self._name} sees {len(peers)} peer(s):")
        for peer in peers:
            logger.info(
                f"  {peer.name} service port {peer.port} at {peer.ip_address}:{peer.source_port}"
            )
        return peers

    async def _report_loop(self) -> None:
        while True:
            await asyncio.sleep(self.report_interval)
            await self.report()

    async def get_peers(self) -> list[Peer]:
        """Return the currently alive peers without evicting anything."""
        now = time.monotonic()
        peers = await self.registry.snapshot()
        return [
            p for p in peers
            if not self.is_self(p) and now - p.last_seen <= self.peer_timeout
        ]
