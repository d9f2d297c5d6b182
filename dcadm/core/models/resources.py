"""
Resource models — images and agent services, the units procedures act on.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

MIB = 1024 * 1024


class ImageFile(BaseModel):
    """A file belonging to an image (the image payload)."""

    sha1: str = ""
    size: int = 0                  # bytes
    compression: str = ""


class Image(BaseModel):
    """An image in the registry, or one to be imported into it."""

    uuid: str
    name: str = ""
    version: str = ""
    state: str = "active"          # active, unactivated, disabled
    files: list[ImageFile] = Field(default_factory=list)

    @property
    def size(self) -> int:
        """Payload size in bytes (first file only, 0 when there is none)."""
        return self.files[0].size if self.files else 0

    @property
    def label(self) -> str:
        return f"{self.name}@{self.version}"


class ServiceSpec(BaseModel):
    """Creation payload for a service in the service directory."""

    type: str = "agent"
    params: dict[str, Any] = Field(default_factory=dict)
    metadata: dict[str, Any] = Field(default_factory=dict)
    manifests: dict[str, Any] = Field(default_factory=dict)


class AgentService(BaseModel):
    """An agent service to provision: its name plus creation payload."""

    name: str
    spec: ServiceSpec = Field(default_factory=ServiceSpec)


class Reachability(BaseModel):
    """Result of the network-topology external reachability check."""

    needs_external_nic: bool = False
    zones: list[str] = Field(default_factory=list)   # zones missing a NIC
