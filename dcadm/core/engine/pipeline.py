"""
Step pipeline — ordered steps for one unit of work, fail-fast.

Each step looks at the unit and either skips itself, does its work,
or fails. The first failure stops the pipeline: later steps never run
for a unit that is already doomed. Retrying is not the pipeline's job;
a remote call that fails has already used its own retry budget.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Awaitable, Callable, Generic, TypeVar

from dcadm.core.errors import ClientError, DcadmError
from dcadm.core.models.step import StepResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Step(Generic[T]):
    """A named coroutine that acts on one unit."""

    name: str
    run: Callable[[T], Awaitable[StepResult]]


@dataclass
class PipelineResult:
    """Every step result for one resource, up to the first failure."""

    resource: str
    results: list[StepResult] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(r.failed for r in self.results)

    @property
    def error(self) -> DcadmError | None:
        for r in self.results:
            if r.failed:
                return r.error
        return None

    @property
    def steps_run(self) -> list[str]:
        return [r.step for r in self.results]

    def raise_for_failure(self) -> None:
        """Raise the failing step's error, if any."""
        error = self.error
        if error is not None:
            raise error


async def run_pipeline(resource: str, steps: list[Step[T]], unit: T) -> PipelineResult:
    """Run ``steps`` in order against ``unit``.

    A step that raises a DcadmError is recorded as failed. Client
    errors are tagged with ``resource`` when the step left it unset.

    Args:
        resource: Identifier of the resource the unit acts on.
        steps: Steps to run, in order.
        unit: The unit of work.

    Returns:
        PipelineResult with one StepResult per step that ran.
    """
    outcome = PipelineResult(resource=resource)

    for step in steps:
        started_at = datetime.now(UTC).isoformat()
        start = time.monotonic()
        try:
            result = await step.run(unit)
        except DcadmError as e:
            result = StepResult.failure(step.name, resource, e)
        result.duration_ms = int((time.monotonic() - start) * 1000)
        result.started_at = started_at
        result.ended_at = datetime.now(UTC).isoformat()

        if result.failed and isinstance(result.error, ClientError) and not result.error.resource:
            result.error.resource = resource

        outcome.results.append(result)
        logger.debug("%s: step %s → %s", resource, step.name, result.status)

        if result.failed:
            break

    return outcome
