"""In-memory registry of peers seen on the multicast group."""

import asyncio

from lan_discovery.discovery.models import Peer


class PeerRegistry:
    """
    Maps PeerId to the latest announcement received from that address.

    Every operation takes the same lock, so a reader never sees a record
    halfway through an update and evict-then-read runs as one step.
    """

    def __init__(self) -> None:
        self._peers: dict[str, Peer] = {}
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._peers)

    async def upsert(
        self,
        peer_id: str,
        name: str,
        announced_port: int,
        now: float,
        address: tuple[str, int],
    ) -> tuple[Peer, bool]:
        """Insert or overwrite the record for peer_id. Returns (peer, is_new)."""
        peer = Peer(
            peer_id=peer_id,
            name=name,
            ip_address=address[0],
            source_port=address[1],
            port=announced_port,
            last_seen=now,
        )
        async with self._lock:
            is_new = peer_id not in self._peers
            self._peers[peer_id] = peer
        return peer.model_copy(), is_new

    async def evict_stale(self, now: float, window: float) -> list[Peer]:
        """Drop every peer not heard from within window. Returns the dropped peers."""
        async with self._lock:
            return self._evict(now, window)

    async def snapshot(self) -> list[Peer]:
        async with self._lock:
            return self._copy()

    async def evict_and_snapshot(self, now: float, window: float) -> tuple[list[Peer], list[Peer]]:
        """Evict stale peers and copy the survivors under a single lock hold."""
        async with self._lock:
            evicted = self._evict(now, window)
            return self._copy(), evicted

    async def get(self, peer_id: str) -> Peer | None:
        async with self._lock:
            peer = self._peers.get(peer_id)
            return peer.model_copy() if peer else None

    def _evict(self, now: float, window: float) -> list[Peer]:
        stale = [
            peer_id for peer_id, peer in self._peers.items()
            if now - peer.last_seen > window
        ]
        return [self._peers.pop(peer_id) for peer_id in stale]

    def _copy(self) -> list[Peer]:
        return [peer.model_copy() for peer in self._peers.values()]
