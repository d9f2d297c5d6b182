"""
Procedure contract — one kind of change the engine knows how to apply.

A procedure plans its work list against the live datacenter, describes
it (for the operator and for history), and executes it. The set of
procedures is closed: see ``Procedure`` at the bottom of
``dcadm.core.procedures``.
"""

from __future__ import annotations

from typing import Protocol

from dcadm.core.context import EngineContext
from dcadm.core.errors import DcadmError
from dcadm.core.models.change import ChangeDescriptor


class ProcedureLike(Protocol):
    """The operations every procedure provides."""

    name: str      # history label, e.g. "download-images"
    title: str     # operator label, e.g. "Download images"

    async def plan(self, ctx: EngineContext) -> None:
        """Work out which units need running. Must not mutate anything."""
        ...

    def summarize(self) -> str:
        """Human-readable description of the planned work."""
        ...

    def changes(self) -> list[ChangeDescriptor]:
        """One descriptor per planned unit, in planning order."""
        ...

    async def execute(self, ctx: EngineContext) -> DcadmError | None:
        """Run every planned unit; return the aggregated failure, if any."""
        ...
