"""Adapters — service clients for the engine's remote collaborators.

Public re-exports for convenient access.
"""

from dcadm.adapters.base import (
    Clients,
    HistoryStore,
    ImageSource,
    NetworkTopology,
    ResourceDirectory,
)
from dcadm.adapters.mock import (
    MemoryHistoryStore,
    MockImageSource,
    MockNetworkTopology,
    MockResourceDirectory,
    mock_clients,
)

__all__ = [
    "Clients",
    "HistoryStore",
    "ImageSource",
    "MemoryHistoryStore",
    "MockImageSource",
    "MockNetworkTopology",
    "MockResourceDirectory",
    "NetworkTopology",
    "ResourceDirectory",
    "mock_clients",
]
