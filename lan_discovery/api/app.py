"""FastAPI application serving the peer view of a running DiscoveryService."""

import logging

from fastapi import FastAPI, WebSocket, WebSocketDisconnect

from lan_discovery.api.routes import init_routes, router
from lan_discovery.api.websocket import ConnectionManager

logger = logging.getLogger(__name__)


def create_app(discovery_service) -> FastAPI:
    """Build the API around an already started discovery service."""
    app = FastAPI(title="LAN Discovery", version="0.1.0")
    ws_manager = ConnectionManager()

    discovery_service.on_peer_change(ws_manager.handle_peer_event)
    init_routes(discovery_service)
    app.include_router(router)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        peers = await discovery_service.get_peers()
        await ws_manager.connect(websocket, [p.model_dump() for p in peers])
        try:
            while True:
                # Keep the connection alive; clients do not send anything
                await websocket.receive_text()
        except WebSocketDisconnect:
            ws_manager.disconnect(websocket)

    return app
