"""
Endpoint model.

An endpoint is a game server registered by an owner. Its status mirrors the
watcher lifecycle and is the only part that changes while a watcher runs.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EndpointKind(str, Enum):
    """Supported game-server kinds."""

    BEDROCK = "bedrock"


class EndpointStatus(str, Enum):
    """Persisted watcher lifecycle status."""

    STOPPED = "stopped"
    SEARCHING = "searching"
    CONNECTING = "connecting"
    ACTIVE = "active"
    RECONNECTING = "reconnecting"
    UNSUPPORTED = "unsupported"
    CONNECT_FAILED = "connect_failed"
    UNKNOWN = "unknown"


# Statuses that imply a live session; none survive a process restart
LIVE_STATUSES = frozenset(
    {
        EndpointStatus.SEARCHING,
        EndpointStatus.CONNECTING,
        EndpointStatus.ACTIVE,
        EndpointStatus.RECONNECTING,
    }
)


class Endpoint(BaseModel):
    """A registered, watchable game server."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    id: str = Field(..., description="Opaque unique token generated at creation")
    owner_id: int = Field(..., description="Owning user's external id")
    display_name: str = Field(default="", description="Renumbered name such as #1")
    kind: EndpointKind = Field(default=EndpointKind.BEDROCK, description="Game-server kind")
    host: str = Field(..., description="Server host name or address")
    port: int = Field(..., ge=1, le=65535, description="Server port")
    status: EndpointStatus = Field(default=EndpointStatus.STOPPED, description="Watcher lifecycle status")
    notify_on_error: bool = Field(default=True, description="Notify the owner when the watcher disconnects")
    auto_restart: bool = Field(default=False, description="Restart the watcher after a lost connection")
    watcher_name: str = Field(default="MaxBlack", description="Identity the watcher connects with")

    def address(self) -> tuple[str, int]:
        return (self.host, self.port)

    def __repr__(self) -> str:
        return f"<Endpoint(id={self.id}, owner_id={self.owner_id}, {self.host}:{self.port}, status={self.status.value})>"
