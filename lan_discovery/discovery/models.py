"""Pydantic models for peer discovery."""

from pydantic import BaseModel, ConfigDict, Field


class Announcement(BaseModel):
    """The JSON payload multicast by every participant."""
    model_config = ConfigDict(strict=True, extra="ignore")

    name: str
    port: int = Field(ge=0, le=65535)  # service port, not the discovery port


class Peer(BaseModel):
    """A participant seen on the multicast group."""
    peer_id: str  # "<ip>:<source port>"
    name: str
    ip_address: str
    source_port: int
    port: int
    last_seen: float = Field(exclude=True)  # time.monotonic() at receipt

    @property
    def address(self) -> tuple[str, int]:
        return (self.ip_address, self.source_port)


def make_peer_id(address: tuple[str, int]) -> str:
    """Build the registry key from a datagram source address."""
    return f"{address[0]}:{address[1]}"
