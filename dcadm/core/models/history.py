"""
HistoryRecord — the audit trail of one procedure run.

A record is saved before any mutating work begins and updated exactly
once when the run drains. A record whose ``finished_at`` is still unset
on disk marks a run that was interrupted.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from dcadm.core.models.change import ChangeDescriptor


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class HistoryRecord(BaseModel):
    """One run of a procedure, as seen by an auditor."""

    id: str = ""                   # assigned by the store on save
    procedure: str = ""            # download-images, add-new-agent-svcs
    changes: list[ChangeDescriptor] = Field(default_factory=list)

    started_at: str = Field(default_factory=_now_iso)
    finished_at: str | None = None

    # Serialised terminal error (DcadmError.to_dict()), None on success
    error: dict[str, Any] | None = None

    @property
    def finished(self) -> bool:
        return self.finished_at is not None

    @property
    def status(self) -> str:
        if not self.finished:
            return "interrupted"
        return "failed" if self.error else "ok"
