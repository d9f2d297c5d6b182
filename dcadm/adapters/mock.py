"""
Mock clients — in-memory test doubles for every remote service.

Used in mock mode (``--mock``) to exercise procedures without touching
a datacenter, and by the test suite. Each client keeps a call log and
can be told to fail specific calls with a given cause.
"""

from __future__ import annotations

import asyncio
import uuid as uuidlib
from typing import Any

from dcadm.adapters.base import (
    Clients,
    HistoryStore,
    ImageSource,
    NetworkTopology,
    ResourceDirectory,
)
from dcadm.core.errors import CauseKind, RemoteCallError
from dcadm.core.models.history import HistoryRecord
from dcadm.core.models.resources import Image, Reachability, ServiceSpec

DEFAULT_SAPI_VERSION = "release-20150115-20150115T063117Z-g7f5e5a2"


class _MockClient:
    """Shared call log, failure table and latency for mock clients."""

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self.calls: list[tuple[str, Any]] = []
        self._failures: dict[tuple[str, Any], RemoteCallError] = {}
        self.in_flight = 0
        self.peak_in_flight = 0

    def set_failure(
        self,
        method: str,
        key: Any,
        message: str = "Mock failure",
        kind: CauseKind | str = CauseKind.UNKNOWN,
    ) -> None:
        """Make ``method`` fail whenever it is called for ``key``."""
        self._failures[(method, key)] = RemoteCallError(message, kind=kind)

    def call_count(self, method: str, key: Any = None) -> int:
        return sum(
            1 for m, k in self.calls if m == method and (key is None or k == key)
        )

    async def _call(self, method: str, key: Any) -> None:
        self.calls.append((method, key))
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            # Always yield so concurrent callers interleave
            await asyncio.sleep(self.latency)
        finally:
            self.in_flight -= 1
        failure = self._failures.get((method, key))
        if failure is not None:
            raise failure


class MockResourceDirectory(_MockClient, ResourceDirectory):
    """In-memory service directory."""

    def __init__(
        self,
        services: list[dict[str, Any]] | None = None,
        service_images: dict[str, Image] | None = None,
        latency: float = 0.0,
    ):
        super().__init__(latency=latency)
        self.services: list[dict[str, Any]] = list(services or [])
        self.service_images = service_images or {
            "sapi": Image(uuid=str(uuidlib.uuid4()), name="sapi", version=DEFAULT_SAPI_VERSION),
        }
        self.applications: dict[str, str] = {"sdc": str(uuidlib.uuid4())}

    async def get_application_uuid(self, name: str) -> str:
        await self._call("get_application_uuid", name)
        if name not in self.applications:
            raise RemoteCallError(f"no application named {name}", CauseKind.NOT_FOUND)
        return self.applications[name]

    async def list_services(self, filters: dict[str, Any]) -> list[dict[str, Any]]:
        await self._call("list_services", filters.get("name"))
        return [
            svc
            for svc in self.services
            if all(svc.get(k) == v for k, v in filters.items())
        ]

    async def create_service(
        self, name: str, application_uuid: str, spec: ServiceSpec
    ) -> None:
        await self._call("create_service", name)
        self.services.append(
            {
                "uuid": str(uuidlib.uuid4()),
                "name": name,
                "type": spec.type,
                "application_uuid": application_uuid,
                "params": spec.params,
                "metadata": spec.metadata,
            }
        )

    async def get_service_image(self, service: str) -> Image:
        await self._call("get_service_image", service)
        image = self.service_images.get(service)
        if image is None:
            raise RemoteCallError(f"no instances of service {service}", CauseKind.NOT_FOUND)
        return image


class MockImageSource(_MockClient, ImageSource):
    """In-memory image registry.

    ``remote`` is the catalog available for import; ``local`` holds the
    images already present.
    """

    def __init__(
        self,
        local: list[Image] | None = None,
        remote: list[Image] | None = None,
        latency: float = 0.0,
    ):
        super().__init__(latency=latency)
        self.local: dict[str, Image] = {img.uuid: img for img in local or []}
        self.remote: dict[str, Image] = {img.uuid: img for img in remote or []}

    async def get_image(self, uuid: str) -> Image | None:
        await self._call("get_image", uuid)
        return self.local.get(uuid)

    async def import_remote(
        self,
        uuid: str,
        source: str,
        skip_owner_check: bool = False,
        retries: int = 5,
    ) -> Image:
        await self._call("import_remote", uuid)
        base = self.remote.get(uuid) or Image(uuid=uuid)
        image = base.model_copy(update={"state": "active"})
        self.local[uuid] = image
        return image

    async def delete_image(self, uuid: str) -> None:
        await self._call("delete_image", uuid)
        if uuid not in self.local:
            raise RemoteCallError(f"image {uuid} not found", CauseKind.NOT_FOUND)
        del self.local[uuid]


class MockNetworkTopology(_MockClient, NetworkTopology):
    """Topology service with a fixed reachability answer."""

    def __init__(self, reachability: Reachability | None = None, latency: float = 0.0):
        super().__init__(latency=latency)
        self.reachability = reachability or Reachability()

    async def check_external_reachability(self) -> Reachability:
        await self._call("check_external_reachability", None)
        return self.reachability


class MemoryHistoryStore(_MockClient, HistoryStore):
    """History store kept in a dict.

    ``snapshots`` keeps a deep copy of every record as it was written,
    so callers can inspect what was persisted at each stage.
    """

    def __init__(self, latency: float = 0.0):
        super().__init__(latency=latency)
        self.records: dict[str, HistoryRecord] = {}
        self.snapshots: list[HistoryRecord] = []

    async def save(self, record: HistoryRecord) -> HistoryRecord:
        await self._call("save", None)
        saved = record.model_copy(update={"id": record.id or uuidlib.uuid4().hex})
        self.records[saved.id] = saved.model_copy(deep=True)
        self.snapshots.append(saved.model_copy(deep=True))
        return saved

    async def update(self, record: HistoryRecord) -> None:
        await self._call("update", record.id)
        if record.id not in self.records:
            raise RemoteCallError(f"history {record.id} not found", CauseKind.NOT_FOUND)
        self.records[record.id] = record.model_copy(deep=True)
        self.snapshots.append(record.model_copy(deep=True))

    async def get(self, record_id: str) -> HistoryRecord | None:
        return self.records.get(record_id)

    async def list_recent(self, n: int = 20) -> list[HistoryRecord]:
        ordered = sorted(self.records.values(), key=lambda r: r.started_at)
        return ordered[-n:]


def mock_clients(history: HistoryStore | None = None, latency: float = 0.0) -> Clients:
    """Build a fresh bundle of mock clients."""
    return Clients(
        directory=MockResourceDirectory(latency=latency),
        images=MockImageSource(latency=latency),
        topology=MockNetworkTopology(latency=latency),
        history=history or MemoryHistoryStore(latency=latency),
    )
