"""Version catalog entry model."""

from pydantic import BaseModel, ConfigDict, Field

from .endpoint import EndpointKind


class VersionCatalogEntry(BaseModel):
    """Maps a protocol id reported by a probed server to a version name. Unique on (kind, protocol_id)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    kind: EndpointKind = Field(default=EndpointKind.BEDROCK, description="Game-server kind")
    protocol_id: int = Field(..., description="Protocol number reported by the server")
    version_name: str = Field(..., description="Human-readable version, e.g. 1.21.100")

    @property
    def key(self) -> tuple[EndpointKind, int]:
        return (self.kind, self.protocol_id)
