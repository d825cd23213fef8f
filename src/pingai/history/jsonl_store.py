"""Check history persisted as a JSON-lines file."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Iterable

from pydantic import BaseModel, Field, ValidationError

from pingai.core.schema import CheckStatus, FullCheckResult
from pingai.core.timing import now_string

log = logging.getLogger(__name__)


class HistoryRecord(BaseModel):
    """One stored check run."""

    id: int
    created_at: str
    status: CheckStatus
    result: FullCheckResult


class HistoryPage(BaseModel):
    """A page of history, newest first, plus the total record count."""

    items: list[HistoryRecord] = Field(default_factory=list)
    total: int = 0


class HistoryStore:
    """Append-only history file with id-based deletion.

    Writes and rewrites are serialized with a lock so batch callbacks may save
    from worker threads.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> list[HistoryRecord]:
        if not self._path.exists():
            return []
        records: list[HistoryRecord] = []
        with open(self._path, encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    records.append(HistoryRecord.model_validate_json(line))
                except ValidationError as e:
                    log.warning("Skipping corrupt history line %d in %s: %s", lineno, self._path, e.error_count())
        return records

    def _rewrite(self, records: Iterable[HistoryRecord]) -> None:
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            for r in records:
                f.write(r.model_dump_json() + "\n")
        tmp.replace(self._path)

    def append(self, result: FullCheckResult) -> HistoryRecord:
        """Store a result under the next id and return the stored record."""
        with self._lock:
            existing = self._read()
            next_id = max((r.id for r in existing), default=0) + 1
            record = HistoryRecord(
                id=next_id,
                created_at=now_string(),
                status=result.overall_status(),
                result=result,
            )
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "a", encoding="utf-8") as f:
                f.write(record.model_dump_json() + "\n")
        log.debug("Saved history record %d for %s", record.id, result.unit_id or result.provider_id)
        return record

    def save(self, result: FullCheckResult) -> None:
        self.append(result)

    def list(self, limit: int = 20, offset: int = 0) -> HistoryPage:
        """Return records newest first."""
        with self._lock:
            records = self._read()
        records.sort(key=lambda r: r.id, reverse=True)
        start = max(offset, 0)
        end = start + limit if limit > 0 else None
        return HistoryPage(items=records[start:end], total=len(records))

    def get(self, record_id: int) -> HistoryRecord | None:
        with self._lock:
            for r in self._read():
                if r.id == record_id:
                    return r
        return None

    def count(self) -> int:
        with self._lock:
            return len(self._read())

    def delete(self, record_id: int) -> bool:
        return self.delete_many([record_id]) == 1

    def delete_many(self, record_ids: Iterable[int]) -> int:
        """Delete records by id; return how many were removed."""
        targets = set(record_ids)
        if not targets:
            return 0
        with self._lock:
            records = self._read()
            kept = [r for r in records if r.id not in targets]
            removed = len(records) - len(kept)
            if removed:
                self._rewrite(kept)
        return removed

    def clear(self) -> int:
        """Delete every record; return how many were removed."""
        with self._lock:
            removed = len(self._read())
            if self._path.exists():
                self._path.unlink()
        return removed
