"""
Engine context — what a procedure needs from the outside world.

Passed explicitly to every procedure; nothing here is process-global.
The CLI builds one per invocation, tests build their own around mock
clients and a recording progress reporter.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from dcadm.adapters.base import Clients
from dcadm.core.models.config import EngineConfig
from dcadm.core.observability.progress import Progress


@dataclass
class EngineContext:
    """Clients, configuration and progress reporter for one run."""

    clients: Clients
    config: EngineConfig = field(default_factory=EngineConfig)
    progress: Progress = field(default_factory=Progress)

    @property
    def concurrency(self) -> int:
        return self.config.concurrency
