"""
StepResult — the outcome of one pipeline step.

Steps report through StepResult rather than raising: a step either
did its work, decided it had nothing to do, or failed with a typed
error tagged with the resource it was acting on.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from dcadm.core.errors import DcadmError


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class StepResult(BaseModel):
    """Result of a single step for a single resource."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    step: str
    resource: str
    status: Literal["ok", "skipped", "failed"] = "ok"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: DcadmError | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @property
    def skipped(self) -> bool:
        return self.status == "skipped"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def success(cls, step: str, resource: str, output: str = "", **kwargs: Any) -> StepResult:
        """Create a success result."""
        return cls(step=step, resource=resource, status="ok", output=output, **kwargs)

    @classmethod
    def failure(cls, step: str, resource: str, error: DcadmError, **kwargs: Any) -> StepResult:
        """Create a failure result."""
        return cls(step=step, resource=resource, status="failed", error=error, **kwargs)

    @classmethod
    def skip(cls, step: str, resource: str, reason: str = "", **kwargs: Any) -> StepResult:
        """Create a no-op result."""
        return cls(step=step, resource=resource, status="skipped", output=reason, **kwargs)
