"""
Error aggregation and diagnosis.

The aggregator collects per-unit failures while the queue drains and
turns them into the run's single result:

    0 failures  → None
    1 failure   → that error, unwrapped
    2+ failures → CompositeError, in completion order

The diagnoser then looks for failures with a known root cause and, when
it can confirm the condition, tells the operator how to fix it. It only
adds a message; it never changes the error being returned.
"""

from __future__ import annotations

import logging
from typing import Iterable

from dcadm.adapters.base import NetworkTopology
from dcadm.core.errors import (
    CauseKind,
    ClientError,
    CompositeError,
    DcadmError,
    InternalError,
)
from dcadm.core.observability.progress import Progress

logger = logging.getLogger(__name__)

EXTERNAL_NIC_REMEDIATION = (
    "Some operations failed because a core zone (e.g. imgapi) has no "
    "external NIC and cannot reach remote sources.\n"
    "Please run:\n"
    "\n"
    "   dcadm post-setup common-external-nics\n"
    "\n"
    "and try again.\n"
)


class ErrorAggregator:
    """Collects unit failures until sealed."""

    def __init__(self) -> None:
        self._errors: list[DcadmError] = []
        self._sealed = False
        self._result: DcadmError | None = None

    @property
    def errors(self) -> list[DcadmError]:
        return list(self._errors)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def add(self, error: DcadmError) -> None:
        """Record one failure.

        Raises:
            InternalError: If the aggregator was already sealed.
        """
        if self._sealed:
            raise InternalError(f"failure reported after drain: {error}")
        self._errors.append(error)

    def seal(self) -> DcadmError | None:
        """Stop accepting failures and return the aggregated result."""
        if not self._sealed:
            self._sealed = True
            if len(self._errors) == 1:
                self._result = self._errors[0]
            elif self._errors:
                self._result = CompositeError(self._errors)
        return self._result


def flatten_errors(error: DcadmError | None) -> list[DcadmError]:
    """The member errors of an aggregated result."""
    if error is None:
        return []
    if isinstance(error, CompositeError):
        return list(error.errors)
    return [error]


def has_reachability_signature(errors: Iterable[DcadmError]) -> bool:
    """Whether any failure came from a remote source the zone cannot reach."""
    return any(
        isinstance(e, ClientError) and e.cause_kind == CauseKind.REMOTE_SOURCE
        for e in errors
    )


async def diagnose(
    errors: list[DcadmError],
    topology: NetworkTopology,
    progress: Progress,
) -> bool:
    """Check failures for known root causes and advise the operator.

    Runs the reachability check at most once, however many failures
    match. A failure of the check itself is logged and ignored.

    Returns:
        True if a remediation advisory was emitted.
    """
    if not has_reachability_signature(errors):
        return False

    try:
        reachability = await topology.check_external_reachability()
    except Exception as e:  # any transport failure; the run's error stands
        logger.warning("Could not check for missing external NICs: %s", e)
        return False

    if not reachability.needs_external_nic:
        logger.debug("Remote source failures, but external NICs are present")
        return False

    progress.advise(EXTERNAL_NIC_REMEDIATION)
    return True
