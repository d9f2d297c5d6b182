"""
Engine executor — the procedure run loop.

Flow:
    plan → history begin → fan out units → aggregate → history finish → diagnose

``run_units`` is the fan-out half, shared by every procedure: push all
units through a WorkQueue and fold their failures into one result.
``run_procedure`` drives a whole procedure and returns a report; it
never raises for failures of the work, the history store or planning.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, TypeVar

from dcadm.core.context import EngineContext
from dcadm.core.engine.aggregator import ErrorAggregator, diagnose, flatten_errors
from dcadm.core.engine.history import HistoryRecorder
from dcadm.core.engine.queue import DEFAULT_CONCURRENCY, WorkQueue
from dcadm.core.errors import DcadmError, HistoryError, InternalError
from dcadm.core.models.history import HistoryRecord

if TYPE_CHECKING:
    from dcadm.core.procedures.base import ProcedureLike

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_units(
    units: Iterable[T],
    worker: Callable[[T], Awaitable[Any]],
    concurrency: int = DEFAULT_CONCURRENCY,
    name: str = "queue",
) -> DcadmError | None:
    """Run every unit through ``worker`` with bounded concurrency.

    Failures are collected in completion order; one failing unit never
    stops the others.

    Returns:
        None, the single failure, or a CompositeError.
    """
    aggregator = ErrorAggregator()

    def on_complete(unit: T, error: BaseException | None) -> None:
        if error is None:
            return
        if not isinstance(error, DcadmError):
            logger.error("Unexpected error processing %r", unit, exc_info=error)
            wrapped = InternalError(f"unexpected error processing {unit!r}: {error}")
            wrapped.__cause__ = error
            error = wrapped
        aggregator.add(error)

    queue: WorkQueue[T] = WorkQueue(worker, concurrency=concurrency, name=name)
    queue.on_complete(on_complete)
    for unit in units:
        queue.push(unit)
    queue.close()
    await queue.join()

    return aggregator.seal()


@dataclass
class ProcedureReport:
    """Outcome of one procedure run."""

    procedure: str = ""
    summary: str = ""
    history: HistoryRecord | None = None
    error: DcadmError | None = None
    history_error: HistoryError | None = None
    advised: bool = False
    elapsed_s: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def status(self) -> str:
        return "ok" if self.ok else "failed"

    def to_dict(self) -> dict:
        return {
            "procedure": self.procedure,
            "status": self.status,
            "summary": self.summary,
            "history_id": self.history.id if self.history else None,
            "changes": len(self.history.changes) if self.history else 0,
            "error": self.error.to_dict() if self.error else None,
            "advised": self.advised,
            "elapsed_s": round(self.elapsed_s, 3),
        }


async def plan_procedure(procedure: ProcedureLike, ctx: EngineContext) -> str:
    """Plan without executing; return the summary."""
    await procedure.plan(ctx)
    return procedure.summarize()


async def run_procedure(procedure: ProcedureLike, ctx: EngineContext) -> ProcedureReport:
    """Plan, record, execute and finalize one procedure.

    Errors during planning or while saving the initial history record
    end the run before any mutation. A history failure at the end is
    reported as the run's error only when the work itself succeeded.
    """
    report = ProcedureReport(procedure=procedure.name)
    recorder = HistoryRecorder(ctx.clients.history)
    start = time.monotonic()

    try:
        report.summary = await plan_procedure(procedure, ctx)
        record = await recorder.begin(procedure.changes(), procedure=procedure.name)
    except DcadmError as e:
        logger.info("%s aborted before execution: %s", procedure.name, e)
        report.error = e
        report.elapsed_s = time.monotonic() - start
        return report

    report.history = record
    work_error = await procedure.execute(ctx)
    error = work_error

    try:
        await recorder.finish(record, work_error)
    except HistoryError as e:
        report.history_error = e
        if error is None:
            error = e
        else:
            logger.error("History update failed after a failed run: %s", e)

    elapsed = time.monotonic() - start
    ctx.progress("%s finished (elapsed %ds).", procedure.title, int(elapsed))

    report.advised = await diagnose(
        flatten_errors(work_error),
        ctx.clients.topology,
        ctx.progress,
    )
    report.error = error
    report.elapsed_s = elapsed
    return report
