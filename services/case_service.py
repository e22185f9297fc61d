"""Case review orchestration on top of the warehouse."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional
from uuid import uuid4

from app.schemas import (
    CaseDetail,
    CaseStatus,
    CaseSummary,
    Note,
    NoteType,
    SnapshotRecord,
)
from services.slow_heating import SlowHeatingAssessment, SlowHeatingDetector
from settings import get_settings
from warehouse.mock_warehouse import MockWarehouse, build_default_warehouse, utc_now

logger = logging.getLogger(__name__)

MIN_NOTE_LENGTH = 2
MIN_RESOLUTION_LENGTH = 5

CASE_TABS = ("open", "resolved", "all")


class CaseNotOpenError(RuntimeError):
    """Raised when a write targets a case that is no longer open."""


@dataclass(frozen=True)
class CaseReview:
    """Everything the case detail view renders."""

    case: CaseDetail
    snapshots: list[SnapshotRecord]
    slow_heating: SlowHeatingAssessment


def make_note(text: str, note_type: NoteType = NoteType.note, author: str = "internal") -> Note:
    return Note(
        id=str(uuid4()),
        text=text.strip(),
        author=author,
        created_at=utc_now(),
        type=note_type,
    )


def filter_cases(
    cases: Iterable[CaseSummary],
    tab: str = "open",
    agency_id: Optional[str] = None,
) -> list[CaseSummary]:
    """Narrow a case list to one agency and one dashboard tab."""
    filtered = list(cases)
    if agency_id:
        filtered = [case for case in filtered if case.agency_id == agency_id]
    if tab == "open":
        filtered = [case for case in filtered if case.status == CaseStatus.open]
    elif tab == "resolved":
        filtered = [case for case in filtered if case.status == CaseStatus.resolved]
    return filtered


class CaseService:
    """Validates review actions and runs them against the warehouse."""

    def __init__(
        self,
        warehouse: MockWarehouse,
        detector: SlowHeatingDetector,
        case_limit: int = 500,
        padding_hours: int = 2,
    ) -> None:
        self.warehouse = warehouse
        self.detector = detector
        self.case_limit = case_limit
        self.padding_hours = padding_hours

    def health(self) -> int:
        return self.warehouse.count_cases()

    def list_cases(self) -> list[CaseSummary]:
        cases = self.warehouse.list_cases(limit=self.case_limit)
        logger.debug("Listed cases", extra={"row_count": len(cases)})
        return cases

    def get_case(self, case_id: str) -> CaseDetail:
        case = self.warehouse.get_case(case_id)
        if case is None:
            raise KeyError(f"Case {case_id!r} not found.")
        return case

    def list_snapshots(self, case_id: str) -> list[SnapshotRecord]:
        self.get_case(case_id)
        return self.warehouse.snapshots_for_case(case_id, padding_hours=self.padding_hours)

    def add_note(self, case_id: str, text: Optional[str]) -> Note:
        if not text or len(text.strip()) < MIN_NOTE_LENGTH:
            raise ValueError("Note text required")

        note = make_note(text)
        self._ensure_open(case_id)
        if not self.warehouse.append_note(case_id, note):
            raise CaseNotOpenError(f"Case {case_id!r} is not open.")
        logger.info(
            "Added note to case",
            extra={"case_id": case_id, "note_type": note.type.value},
        )
        return note

    def resolve_case(self, case_id: str, reason: Optional[str]) -> str:
        if not reason or len(reason.strip()) < MIN_RESOLUTION_LENGTH:
            raise ValueError(
                f"Resolution reason required (min {MIN_RESOLUTION_LENGTH} characters)"
            )

        resolved_reason = reason.strip()
        note = make_note(resolved_reason, note_type=NoteType.resolution)
        self._ensure_open(case_id)
        if not self.warehouse.resolve_case(case_id, resolved_reason, note):
            raise CaseNotOpenError(f"Case {case_id!r} is not open.")
        logger.info(
            "Resolved case",
            extra={"case_id": case_id, "status": CaseStatus.resolved.value, "reason": resolved_reason},
        )
        return case_id

    def review_case(self, case_id: str) -> CaseReview:
        """Fetch the case, then its snapshot window, then the slow heating verdict."""
        case = self.get_case(case_id)
        snapshots = self.warehouse.snapshots_for_case(case_id, padding_hours=self.padding_hours)
        assessment = self.detector.assess(
            (row.to_snapshot() for row in snapshots), case.body_type
        )
        logger.debug(
            "Assessed case",
            extra={
                "case_id": case_id,
                "system_id": case.system_id,
                "snapshot_count": len(snapshots),
                "slow_heating": assessment.detected,
            },
        )
        return CaseReview(case=case, snapshots=snapshots, slow_heating=assessment)

    def _ensure_open(self, case_id: str) -> None:
        case = self.get_case(case_id)
        if case.status != CaseStatus.open:
            raise CaseNotOpenError(f"Case {case_id!r} is not open.")


@lru_cache
def build_default_case_service() -> CaseService:
    """Factory that wires the service with the default warehouse."""
    settings = get_settings()
    return CaseService(
        warehouse=build_default_warehouse(),
        detector=SlowHeatingDetector(),
        case_limit=settings.case_list_limit,
        padding_hours=settings.snapshot_padding_hours,
    )
