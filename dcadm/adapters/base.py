"""
Client base — the contract between the engine and remote services.

The engine never talks to a transport directly. Every remote capability
it consumes is declared here as an abstract async client; concrete
transports (HTTP, in-memory, ...) implement these and are bundled into
a ``Clients`` object handed to procedures.

Clients signal failure by raising ``RemoteCallError``. Retries are the
client's responsibility: a call that raises has already exhausted its
own retry budget.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from dcadm.core.models.history import HistoryRecord
from dcadm.core.models.resources import Image, Reachability, ServiceSpec


class ResourceDirectory(ABC):
    """Service directory (SAPI-like)."""

    name = "sapi"

    @abstractmethod
    async def get_application_uuid(self, name: str) -> str:
        """Resolve an application (e.g. ``sdc``) to its uuid."""

    @abstractmethod
    async def list_services(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        """List services matching all the given filters."""

    @abstractmethod
    async def create_service(
        self, name: str, application_uuid: str, spec: ServiceSpec
    ) -> None:
        """Create a service. Must tolerate a concurrent creator (last writer wins)."""

    @abstractmethod
    async def get_service_image(self, service: str) -> Image:
        """Return the image the given service's instances run."""


class ImageSource(ABC):
    """Image registry (IMGAPI-like)."""

    name = "imgapi"

    @abstractmethod
    async def get_image(self, uuid: str) -> Image | None:
        """Look up a local image. None when it does not exist."""

    @abstractmethod
    async def import_remote(
        self,
        uuid: str,
        source: str,
        skip_owner_check: bool = False,
        retries: int = 5,
    ) -> Image:
        """Import an image from a remote source and wait for it to activate."""

    @abstractmethod
    async def delete_image(self, uuid: str) -> None:
        """Delete a local image."""


class NetworkTopology(ABC):
    """Network-topology service (NAPI-like)."""

    name = "napi"

    @abstractmethod
    async def check_external_reachability(self) -> Reachability:
        """Report whether core zones lack an external NIC."""


class HistoryStore(ABC):
    """Durable storage for history records."""

    name = "history"

    @abstractmethod
    async def save(self, record: HistoryRecord) -> HistoryRecord:
        """Persist a new record, assigning its id."""

    @abstractmethod
    async def update(self, record: HistoryRecord) -> None:
        """Overwrite an existing record."""

    @abstractmethod
    async def get(self, record_id: str) -> HistoryRecord | None:
        """Load one record by id."""

    @abstractmethod
    async def list_recent(self, n: int = 20) -> list[HistoryRecord]:
        """Most recent records, oldest first."""


@dataclass
class Clients:
    """Everything remote a procedure may call."""

    directory: ResourceDirectory
    images: ImageSource
    topology: NetworkTopology
    history: HistoryStore
