from __future__ import annotations

from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.formatting import format_local_time, heater_label, pump_label, reading
from app.schemas import CaseStatus
from services.case_service import (
    CASE_TABS,
    CaseNotOpenError,
    CaseService,
    build_default_case_service,
    filter_cases,
)
from settings import get_settings


templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent / "templates"))
templates.env.filters["local_time"] = format_local_time
templates.env.filters["heater_label"] = heater_label
templates.env.filters["pump_label"] = pump_label
templates.env.filters["reading"] = reading


def get_case_service() -> CaseService:
    return build_default_case_service()


def _detail_url(request: Request, case_id: str, agency_id: Optional[str]) -> str:
    url = str(request.url_for("ui_case_detail", case_id=case_id))
    if agency_id:
        url = f"{url}?{urlencode({'agency_id': agency_id})}"
    return url


def _render_detail(
    request: Request,
    service: CaseService,
    case_id: str,
    agency_id: Optional[str],
    error: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
) -> HTMLResponse:
    try:
        review = service.review_case(case_id)
    except KeyError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(exc),
        ) from exc

    return templates.TemplateResponse(
        request,
        "ui/detail.html",
        {
            "case": review.case,
            "snapshots": review.snapshots,
            "slow_heating": review.slow_heating,
            "is_open": review.case.status == CaseStatus.open,
            "agency_id": agency_id,
            "error": error,
            "display_timezone": get_settings().display_timezone,
        },
        status_code=status_code,
    )


router = APIRouter(include_in_schema=False)


@router.get("/ui", name="ui_index", response_class=HTMLResponse)
async def ui_index(
    request: Request,
    tab: str = Query("open"),
    agency_id: Optional[str] = Query(None),
    service: CaseService = Depends(get_case_service),
) -> HTMLResponse:
    if tab not in CASE_TABS:
        tab = "open"
    cases = service.list_cases()
    scoped = filter_cases(cases, tab="all", agency_id=agency_id)
    counts = {name: len(filter_cases(scoped, tab=name)) for name in CASE_TABS}
    index_url = str(request.url_for("ui_index"))
    tab_links = {}
    for name in CASE_TABS:
        params = {"tab": name}
        if agency_id:
            params["agency_id"] = agency_id
        tab_links[name] = f"{index_url}?{urlencode(params)}"
    return templates.TemplateResponse(
        request,
        "ui/index.html",
        {
            "cases": filter_cases(scoped, tab=tab),
            "tab": tab,
            "tab_links": tab_links,
            "counts": counts,
            "agency_id": agency_id,
            "display_timezone": get_settings().display_timezone,
        },
    )


@router.get("/ui/cases/{case_id}", name="ui_case_detail", response_class=HTMLResponse)
async def ui_case_detail(
    request: Request,
    case_id: str,
    agency_id: Optional[str] = Query(None),
    service: CaseService = Depends(get_case_service),
) -> HTMLResponse:
    return _render_detail(request, service, case_id, agency_id)


@router.post("/ui/cases/{case_id}/notes", name="ui_add_note")
async def ui_add_note(
    request: Request,
    case_id: str,
    text: str = Form(""),
    agency_id: Optional[str] = Form(None),
    service: CaseService = Depends(get_case_service),
):
    try:
        service.add_note(case_id, text)
    except ValueError as exc:
        return _render_detail(
            request, service, case_id, agency_id, str(exc), status.HTTP_400_BAD_REQUEST
        )
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CaseNotOpenError as exc:
        return _render_detail(
            request, service, case_id, agency_id, str(exc), status.HTTP_409_CONFLICT
        )
    return RedirectResponse(
        _detail_url(request, case_id, agency_id), status_code=status.HTTP_303_SEE_OTHER
    )


@router.post("/ui/cases/{case_id}/resolve", name="ui_resolve_case")
async def ui_resolve_case(
    request: Request,
    case_id: str,
    resolved_reason: str = Form(""),
    agency_id: Optional[str] = Form(None),
    service: CaseService = Depends(get_case_service),
):
    try:
        service.resolve_case(case_id, resolved_reason)
    except ValueError as exc:
        return _render_detail(
            request, service, case_id, agency_id, str(exc), status.HTTP_400_BAD_REQUEST
        )
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except CaseNotOpenError as exc:
        return _render_detail(
            request, service, case_id, agency_id, str(exc), status.HTTP_409_CONFLICT
        )
    return RedirectResponse(
        _detail_url(request, case_id, agency_id), status_code=status.HTTP_303_SEE_OTHER
    )
