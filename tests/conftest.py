"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from dcadm.adapters.base import Clients
from dcadm.adapters.mock import mock_clients
from dcadm.core.context import EngineContext
from dcadm.core.models.config import EngineConfig
from dcadm.core.models.resources import MIB, Image, ImageFile
from dcadm.core.observability.progress import RecordingProgress


@pytest.fixture
def tmp_state_dir(tmp_path: Path) -> Path:
    """Return a temporary directory for state files."""
    state_dir = tmp_path / "state"
    state_dir.mkdir()
    return state_dir


@pytest.fixture
def clients() -> Clients:
    """Fresh mock clients with an in-memory history store."""
    return mock_clients()


@pytest.fixture
def progress() -> RecordingProgress:
    return RecordingProgress()


@pytest.fixture
def engine_ctx(clients: Clients, progress: RecordingProgress) -> EngineContext:
    """Engine context around mock clients."""
    return EngineContext(clients=clients, config=EngineConfig(), progress=progress)


def _make_image(uuid: str, name: str = "", mib: int = 0, state: str = "active") -> Image:
    return Image(
        uuid=uuid,
        name=name or uuid,
        version="1.0.0",
        state=state,
        files=[ImageFile(sha1="0" * 40, size=mib * MIB, compression="gzip")] if mib else [],
    )


@pytest.fixture
def make_image():
    """Factory for images whose payload is ``mib`` MiB."""
    return _make_image
