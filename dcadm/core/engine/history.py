"""
History recorder — intent before work, outcome after.

``begin()`` must succeed before any unit runs: no mutation is allowed
without a record of the intent. ``finish()`` stamps the outcome exactly
once. Store failures surface as HistoryError so they are never mistaken
for a failure of the work itself.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Iterable

from dcadm.adapters.base import HistoryStore
from dcadm.core.errors import DcadmError, HistoryError, InternalError, RemoteCallError
from dcadm.core.models.change import ChangeDescriptor
from dcadm.core.models.history import HistoryRecord

logger = logging.getLogger(__name__)


class HistoryRecorder:
    """Writes history records through a HistoryStore."""

    def __init__(self, store: HistoryStore):
        self._store = store

    async def begin(
        self,
        changes: Iterable[ChangeDescriptor],
        procedure: str = "",
    ) -> HistoryRecord:
        """Persist the intended changes of a run.

        Raises:
            HistoryError: The store rejected the record; the run must stop.
        """
        record = HistoryRecord(procedure=procedure, changes=list(changes))
        try:
            saved = await self._store.save(record)
        except (RemoteCallError, OSError) as e:
            raise HistoryError(f"cannot save history: {e}", phase="begin", cause=e) from e

        logger.info("History %s: %s, %d changes", saved.id, procedure, len(saved.changes))
        return saved

    async def finish(
        self,
        record: HistoryRecord,
        error: DcadmError | None = None,
    ) -> HistoryRecord:
        """Stamp the outcome on ``record`` and persist it.

        Raises:
            InternalError: The record was already finished.
            HistoryError: The store rejected the update.
        """
        if record.finished:
            raise InternalError(f"history {record.id} already finished")

        record.finished_at = datetime.now(UTC).isoformat()
        record.error = error.to_dict() if error is not None else None

        try:
            await self._store.update(record)
        except (RemoteCallError, OSError) as e:
            raise HistoryError(
                f"cannot update history {record.id}: {e}", phase="finish", cause=e
            ) from e

        logger.info("History %s finished: %s", record.id, record.status)
        return record
