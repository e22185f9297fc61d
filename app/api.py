"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from app.schemas import (
    CaseDetail,
    CaseSummary,
    HealthResponse,
    NoteCreate,
    NoteResponse,
    ResolveRequest,
    ResolveResponse,
    SnapshotRecord,
)
from services.case_service import CaseNotOpenError, CaseService, build_default_case_service
from warehouse.mock_warehouse import WarehouseError

router = APIRouter()


def get_case_service() -> CaseService:
    return build_default_case_service()


def _warehouse_failure(exc: WarehouseError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(exc),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check that counts cases in the warehouse.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck(
    service: CaseService = Depends(get_case_service),
) -> HealthResponse:
    try:
        case_count = service.health()
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc
    return HealthResponse(case_count=case_count)


@router.get(
    "/cases",
    response_model=List[CaseSummary],
    summary="List alert cases, newest first.",
)
async def list_cases(
    service: CaseService = Depends(get_case_service),
) -> List[CaseSummary]:
    try:
        return service.list_cases()
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc


@router.get(
    "/cases/{case_id}",
    response_model=CaseDetail,
    summary="Fetch a single case with its notes and resolution.",
)
async def get_case(
    case_id: str,
    service: CaseService = Depends(get_case_service),
) -> CaseDetail:
    try:
        return service.get_case(case_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Case not found",
        ) from exc
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc


@router.get(
    "/cases/{case_id}/snapshots",
    response_model=List[SnapshotRecord],
    summary="Equipment snapshots covering the case's open window.",
)
async def get_case_snapshots(
    case_id: str,
    service: CaseService = Depends(get_case_service),
) -> List[SnapshotRecord]:
    try:
        return service.list_snapshots(case_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Case not found",
        ) from exc
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc


@router.post(
    "/cases/{case_id}/notes",
    response_model=NoteResponse,
    summary="Append a note to an open case.",
)
async def add_note(
    case_id: str,
    payload: NoteCreate,
    service: CaseService = Depends(get_case_service),
) -> NoteResponse:
    try:
        note = service.add_note(case_id, payload.text)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Case not found",
        ) from exc
    except CaseNotOpenError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc
    return NoteResponse(note=note)


@router.post(
    "/cases/{case_id}/resolve",
    response_model=ResolveResponse,
    summary="Resolve an open case with a reason.",
)
async def resolve_case(
    case_id: str,
    payload: ResolveRequest,
    service: CaseService = Depends(get_case_service),
) -> ResolveResponse:
    try:
        resolved_id = service.resolve_case(case_id, payload.resolved_reason)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(exc),
        ) from exc
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Case not found",
        ) from exc
    except CaseNotOpenError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc
    except WarehouseError as exc:
        raise _warehouse_failure(exc) from exc
    return ResolveResponse(case_id=resolved_id)


@router.get(
    "/",
    summary="Root endpoint points at the health check and UI.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status and /ui for the dashboard."}
