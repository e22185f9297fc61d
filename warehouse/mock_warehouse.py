from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from pathlib import Path
from threading import Lock
from typing import Callable, Dict, Iterable, List, Optional

from pydantic import ValidationError

from app.schemas import (
    CaseDetail,
    CaseRecord,
    CaseStatus,
    CaseSummary,
    Note,
    SnapshotRecord,
)
from settings import get_settings

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class WarehouseError(RuntimeError):
    """Raised when the warehouse cannot serve or persist a query."""


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from ``start`` to ``end``, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


class MockWarehouse:
    """In-process stand-in for the alert cases and pool snapshots tables."""

    def __init__(
        self,
        project_id: str,
        dataset: str,
        persistence_path: Optional[Path] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.project_id = project_id
        self.dataset = dataset
        self.persistence_path = persistence_path
        self._clock = clock
        self._cases: Dict[str, CaseRecord] = {}
        self._snapshots: Dict[str, List[SnapshotRecord]] = {}
        self._lock = Lock()
        if persistence_path:
            persistence_path.parent.mkdir(parents=True, exist_ok=True)
            self._load_from_disk()

    @property
    def cases_table(self) -> str:
        return f"{self.project_id}.{self.dataset}.alert_cases"

    @property
    def snapshots_table(self) -> str:
        return f"{self.project_id}.{self.dataset}.pool_snapshots"

    def put_case(self, record: CaseRecord) -> None:
        with self._lock:
            self._commit_case(record.model_copy(deep=True))

    def put_snapshots(self, system_id: str, rows: Iterable[SnapshotRecord]) -> None:
        with self._lock:
            merged = list(self._snapshots.get(system_id, []))
            merged.extend(row.model_copy(deep=True) for row in rows)
            merged.sort(key=lambda row: row.snapshot_ts)
            snapshots = dict(self._snapshots)
            snapshots[system_id] = merged
            self._persist(self._cases, snapshots)
            self._snapshots = snapshots

    def count_cases(self) -> int:
        with self._lock:
            return len(self._cases)

    def list_cases(self, limit: int = 500) -> list[CaseSummary]:
        """Return cases newest first, capped at ``limit`` rows."""

        now = self._clock()
        with self._lock:
            records = sorted(
                self._cases.values(), key=lambda record: record.opened_at, reverse=True
            )[:limit]
            return [
                CaseSummary.model_validate(self._read_view(record, now))
                for record in records
            ]

    def get_case(self, case_id: str) -> Optional[CaseDetail]:
        now = self._clock()
        with self._lock:
            record = self._cases.get(case_id)
            if record is None:
                return None
            view = self._read_view(record, now)
            view["resolved_reason"] = record.resolved_reason
            return CaseDetail.model_validate(view)

    def snapshots_for_case(
        self, case_id: str, padding_hours: int = 2
    ) -> list[SnapshotRecord]:
        """Snapshots of the case's system within its padded open window."""

        now = self._clock()
        padding = timedelta(hours=padding_hours)
        with self._lock:
            record = self._cases.get(case_id)
            if record is None:
                return []
            window_start = record.opened_at - padding
            window_end = (record.resolved_at or now) + padding
            rows = self._snapshots.get(record.system_id, [])
            return [
                row.model_copy(deep=True)
                for row in sorted(rows, key=lambda row: row.snapshot_ts)
                if window_start <= row.snapshot_ts <= window_end
            ]

    def append_note(self, case_id: str, note: Note) -> bool:
        """Append ``note`` to an open case; return whether a row was updated."""

        with self._lock:
            record = self._cases.get(case_id)
            if record is None or record.status != CaseStatus.open:
                return False
            notes = list(record.notes or [])
            notes.append(note.model_copy(deep=True))
            self._commit_case(record.model_copy(update={"notes": notes}))
            return True

    def resolve_case(self, case_id: str, reason: str, note: Note) -> bool:
        now = self._clock()
        with self._lock:
            record = self._cases.get(case_id)
            if record is None or record.status != CaseStatus.open:
                return False
            notes = list(record.notes or [])
            notes.append(note.model_copy(deep=True))
            self._commit_case(
                record.model_copy(
                    update={
                        "status": CaseStatus.resolved,
                        "resolved_at": now,
                        "resolved_reason": reason,
                        "notes": notes,
                    }
                )
            )
            return True

    @staticmethod
    def _read_view(record: CaseRecord, now: datetime) -> dict:
        view = record.model_dump(exclude={"resolved_reason"})
        view["notes"] = view["notes"] or []
        view["minutes_open"] = minutes_between(record.opened_at, record.resolved_at or now)
        return view

    def _commit_case(self, record: CaseRecord) -> None:
        # Caller holds the lock; memory only changes once the write succeeded.
        cases = dict(self._cases)
        cases[record.case_id] = record
        self._persist(cases, self._snapshots)
        self._cases = cases

    def _persist(
        self,
        cases: Dict[str, CaseRecord],
        snapshots: Dict[str, List[SnapshotRecord]],
    ) -> None:
        if not self.persistence_path:
            return
        payload = {
            "cases": {
                case_id: record.model_dump(mode="json")
                for case_id, record in cases.items()
            },
            "snapshots": {
                system_id: [row.model_dump(mode="json") for row in rows]
                for system_id, rows in snapshots.items()
            },
        }
        try:
            self.persistence_path.write_text(json.dumps(payload, indent=2, sort_keys=True))
        except OSError as exc:
            raise WarehouseError(
                f"Could not write warehouse state to {self.persistence_path}: {exc}"
            ) from exc

    def _load_from_disk(self) -> None:
        if not self.persistence_path or not self.persistence_path.exists():
            return

        try:
            raw = self.persistence_path.read_text() or "{}"
            data = json.loads(raw)
        except (OSError, json.JSONDecodeError):
            logger.warning(
                "Ignoring unreadable warehouse state at %s", self.persistence_path
            )
            return

        try:
            cases = {
                case_id: CaseRecord.model_validate(payload)
                for case_id, payload in data.get("cases", {}).items()
            }
            snapshots = {
                system_id: sorted(
                    (SnapshotRecord.model_validate(row) for row in rows),
                    key=lambda row: row.snapshot_ts,
                )
                for system_id, rows in data.get("snapshots", {}).items()
            }
        except (AttributeError, TypeError, ValidationError):
            logger.warning(
                "Ignoring unreadable warehouse state at %s", self.persistence_path
            )
            return
        self._cases = cases
        self._snapshots = snapshots


@lru_cache
def build_default_warehouse(path: Optional[str] = None) -> MockWarehouse:
    settings = get_settings()
    warehouse_path = settings.warehouse_persistence_path if path is None else path
    persistence = Path(warehouse_path) if warehouse_path else None
    return MockWarehouse(
        project_id=settings.project_id,
        dataset=settings.dataset,
        persistence_path=persistence,
    )
