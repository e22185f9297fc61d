"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, Field, field_validator

from models.records import Snapshot


def _unwrap_timestamp(value: Any) -> Any:
    # Warehouse clients hand back either ISO strings or {"value": "..."} wrappers.
    if isinstance(value, dict):
        return value.get("value")
    if isinstance(value, str):
        candidate = value.strip()
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        return candidate
    return value


def _to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


WarehouseTimestamp = Annotated[
    datetime, BeforeValidator(_unwrap_timestamp), AfterValidator(_to_naive_utc)
]
OptionalWarehouseTimestamp = Annotated[
    Optional[datetime], BeforeValidator(_unwrap_timestamp), AfterValidator(_to_naive_utc)
]


class CaseStatus(str, Enum):
    """Case lifecycle states exposed via the API."""

    open = "open"
    resolved = "resolved"


class BodyType(str, Enum):
    pool = "pool"
    spa = "spa"


class NoteType(str, Enum):
    note = "note"
    resolution = "resolution"


class Note(BaseModel):
    """Append-only annotation stored in a case's notes array."""

    id: str
    text: str
    author: str = "internal"
    created_at: WarehouseTimestamp
    type: NoteType = NoteType.note


class CaseRecord(BaseModel):
    """Row of the alert cases table as stored in the warehouse."""

    case_id: str
    system_id: str
    system_name: Optional[str] = None
    agency_id: Optional[str] = None
    agency_name: Optional[str] = None
    body_type: BodyType
    issue_type: Optional[str] = None
    status: CaseStatus = CaseStatus.open
    notes: Optional[List[Note]] = None
    resolved_reason: Optional[str] = None
    opened_at: WarehouseTimestamp
    resolved_at: OptionalWarehouseTimestamp = None


class CaseSummary(BaseModel):
    """Case row as listed on the dashboard."""

    case_id: str
    system_id: str
    system_name: Optional[str] = None
    agency_id: Optional[str] = None
    agency_name: Optional[str] = None
    body_type: BodyType
    issue_type: Optional[str] = None
    status: CaseStatus
    notes: List[Note] = Field(default_factory=list)
    opened_at: WarehouseTimestamp
    resolved_at: OptionalWarehouseTimestamp = None
    minutes_open: int = Field(
        ..., description="Whole minutes from opening until resolution or now."
    )


class CaseDetail(CaseSummary):
    resolved_reason: Optional[str] = None


class SnapshotRecord(BaseModel):
    """Row of the pool snapshots table, keyed by warehouse column names."""

    snapshot_ts: WarehouseTimestamp
    air_temp: Optional[float] = None
    pool_temp: Optional[float] = None
    spa_temp: Optional[float] = None
    set_point_pool: Optional[float] = None
    set_point_spa: Optional[float] = None
    pool_heater: Optional[int] = None
    spa_heater: Optional[int] = None
    filter_pump: Optional[int] = None
    spa_pump: Optional[int] = None
    service_mode: Optional[bool] = None

    @field_validator("service_mode", mode="before")
    @classmethod
    def _coerce_service_mode(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return bool(value)
        return value

    def to_snapshot(self) -> Snapshot:
        return Snapshot(
            timestamp=self.snapshot_ts,
            pool_temperature=self.pool_temp,
            air_temperature=self.air_temp,
            set_point_pool=self.set_point_pool,
            pool_heater_state=self.pool_heater,
            filter_pump_state=self.filter_pump,
            spa_temperature=self.spa_temp,
            set_point_spa=self.set_point_spa,
            spa_heater_state=self.spa_heater,
            spa_pump_state=self.spa_pump,
            service_mode=self.service_mode,
        )


class NoteCreate(BaseModel):
    text: str = ""


class ResolveRequest(BaseModel):
    resolved_reason: str = ""


class NoteResponse(BaseModel):
    ok: bool = True
    note: Note


class ResolveResponse(BaseModel):
    ok: bool = True
    case_id: str


class HealthResponse(BaseModel):
    ok: bool = True
    case_count: int = Field(..., ge=0)
