"""
File history store — one JSON document per procedure run.

Records live in ``<state_dir>/history/<id>.json``. Writes are atomic
(write to a temp file in the same directory, then rename) so a crash
mid-write never leaves a half-written record. A run that dies before
it finishes leaves its record on disk with ``finished_at`` unset.
"""

from __future__ import annotations

import asyncio
import json
import logging
import tempfile
import uuid
from pathlib import Path

from pydantic import ValidationError

from dcadm.adapters.base import HistoryStore
from dcadm.core.errors import CauseKind, RemoteCallError
from dcadm.core.models.history import HistoryRecord

logger = logging.getLogger(__name__)

HISTORY_DIR = "history"


def default_history_dir(state_dir: Path) -> Path:
    """Get the history directory under a state directory."""
    return state_dir / HISTORY_DIR


class FileHistoryStore(HistoryStore):
    """History store backed by a directory of JSON files."""

    def __init__(self, directory: Path):
        self._dir = directory

    @property
    def directory(self) -> Path:
        return self._dir

    def path_for(self, record_id: str) -> Path:
        return self._dir / f"{record_id}.json"

    async def save(self, record: HistoryRecord) -> HistoryRecord:
        saved = record.model_copy(update={"id": record.id or uuid.uuid4().hex})
        await asyncio.to_thread(self._write, saved)
        logger.debug("History record %s saved (%d changes)", saved.id, len(saved.changes))
        return saved

    async def update(self, record: HistoryRecord) -> None:
        if not record.id or not self.path_for(record.id).is_file():
            raise RemoteCallError(f"history record {record.id!r} not found", CauseKind.NOT_FOUND)
        await asyncio.to_thread(self._write, record)
        logger.debug("History record %s updated", record.id)

    async def get(self, record_id: str) -> HistoryRecord | None:
        path = self.path_for(record_id)
        if not path.is_file():
            return None
        return self._read(path)

    async def list_recent(self, n: int = 20) -> list[HistoryRecord]:
        if not self._dir.is_dir():
            return []
        records = [
            record
            for record in (self._read(p) for p in sorted(self._dir.glob("*.json")))
            if record is not None
        ]
        records.sort(key=lambda r: r.started_at)
        return records[-n:]

    def _read(self, path: Path) -> HistoryRecord | None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return HistoryRecord.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            logger.warning("Skipping unreadable history record %s: %s", path.name, e)
            return None

    def _write(self, record: HistoryRecord) -> None:
        path = self.path_for(record.id)
        content = json.dumps(record.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n"

        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self._dir, prefix=".history_", suffix=".tmp")
            tmp = Path(tmp_path)
            try:
                with open(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                tmp.replace(path)
            except Exception:
                tmp.unlink(missing_ok=True)
                raise
        except OSError as e:
            logger.error("Failed to write history record %s: %s", record.id, e)
            raise RemoteCallError(f"cannot write {path}: {e}", CauseKind.UNKNOWN) from e
