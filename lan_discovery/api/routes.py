"""REST API routes exposing the discovered peers."""

import logging

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

# Injected by create_app() at startup
_discovery_service = None


def init_routes(discovery_service) -> None:
    """Inject the discovery service into the routes module."""
    global _discovery_service
    _discovery_service = discovery_service


@router.get("/peers")
async def list_peers():
    """Return the peers currently considered alive."""
    peers = await _discovery_service.get_peers()
    return {"peers": [p.model_dump() for p in peers]}


@router.get("/peers/{peer_id}")
async def get_peer(peer_id: str):
    peers = await _discovery_service.get_peers()
    peer = next((p for p in peers if p.peer_id == peer_id), None)
    if not peer:
        raise HTTPException(status_code=404, detail="Peer not found")
    return peer.model_dump()


# --- Settings ---

class SettingsBody(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    port: int | None = Field(default=None, ge=0, le=65535)


@router.get("/settings")
async def get_settings():
    return {
        "name": _discovery_service.name,
        "port": _discovery_service.service_port,
        "peer_id": _discovery_service.self_id,
    }


@router.put("/settings")
async def update_settings(body: SettingsBody):
    """Change what the next announcements carry."""
    if body.name is not None:
        _discovery_service.name = body.name
    if body.port is not None:
        _discovery_service.service_port = body.port
    logger.info(
        f"Announcement updated: {_discovery_service.name} "
        f"(service port {_discovery_service.service_port})"
    )
    return {"status": "updated"}
