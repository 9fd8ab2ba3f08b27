"""WebSocket fan-out of peer change events."""

import asyncio
import json
import logging

from fastapi import WebSocket

logger = logging.getLogger(__name__)

SEND_TIMEOUT = 2.0  # seconds a client gets to take one event


class ConnectionManager:
    """Tracks WebSocket clients and pushes peer events to them."""

    def __init__(self, send_timeout: float = SEND_TIMEOUT) -> None:
        self._clients: set[WebSocket] = set()
        self._send_timeout = send_timeout

    @property
    def client_count(self) -> int:
        return len(self._clients)

    async def connect(self, websocket: WebSocket, peers: list[dict]) -> None:
        """Accept a client and send it the current peer list."""
        await websocket.accept()
        await websocket.send_text(json.dumps({"event": "peers", "data": peers}))
        self._clients.add(websocket)
        logger.info(f"WebSocket client connected ({self.client_count} open)")

    def disconnect(self, websocket: WebSocket) -> None:
        self._clients.discard(websocket)
        logger.info(f"WebSocket client gone ({self.client_count} open)")

    async def _send(self, websocket: WebSocket, message: str) -> bool:
        try:
            await asyncio.wait_for(websocket.send_text(message), self._send_timeout)
            return True
        except Exception as e:
            logger.debug(f"Dropping WebSocket client: {e!r}")
            return False

    async def broadcast(self, event: str, data: dict) -> None:
        """Send one event to every client at once; clients that fail or stall are dropped."""
        clients = list(self._clients)
        if not clients:
            return
        message = json.dumps({"event": event, "data": data})
        results = await asyncio.gather(*(self._send(ws, message) for ws in clients))
        for ws, ok in zip(clients, results):
            if not ok:
                self.disconnect(ws)

    async def handle_peer_event(self, event: str, peer) -> None:
        """Callback for DiscoveryService.on_peer_change()."""
        await self.broadcast(event, peer.model_dump())
