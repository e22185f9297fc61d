"""Tests for the server-rendered review dashboard."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from app.schemas import CaseRecord, CaseStatus, SnapshotRecord
from services.case_service import CaseService
from services.slow_heating import SlowHeatingDetector
from warehouse.mock_warehouse import MockWarehouse

NOW = datetime(2024, 1, 10, 12, 0)


@pytest.fixture
def warehouse() -> MockWarehouse:
    table = MockWarehouse(
        project_id="poolpilot-analytics", dataset="pool_analytics", clock=lambda: NOW
    )
    table.put_case(
        CaseRecord(
            case_id="cold-pool",
            system_id="sys-cold",
            system_name="Cold Pool",
            agency_id="agency-a",
            agency_name="Agency A",
            body_type="pool",
            issue_type="heater_not_heating",
            opened_at=NOW - timedelta(hours=4),
        )
    )
    table.put_case(
        CaseRecord(
            case_id="warm-spa",
            system_id="sys-spa",
            system_name="Warm Spa",
            agency_id="agency-b",
            agency_name="Agency B",
            body_type="spa",
            issue_type="spa_slow",
            opened_at=NOW - timedelta(hours=2),
        )
    )
    table.put_case(
        CaseRecord(
            case_id="fixed-pool",
            system_id="sys-fixed",
            system_name="Fixed Pool",
            agency_id="agency-a",
            agency_name="Agency A",
            body_type="pool",
            issue_type="pump_off",
            status=CaseStatus.resolved,
            opened_at=NOW - timedelta(days=2),
            resolved_at=NOW - timedelta(days=1),
        )
    )
    table.put_snapshots(
        "sys-cold",
        [
            SnapshotRecord(
                snapshot_ts=NOW - timedelta(hours=4) + timedelta(minutes=48 * index),
                air_temp=45.0,
                pool_temp=60.0 + 0.2 * index,
                set_point_pool=85.0,
                pool_heater=3 if index == 2 else 1,
                filter_pump=1,
            )
            for index in range(6)
        ],
    )
    table.put_snapshots(
        "sys-spa",
        [
            SnapshotRecord(
                snapshot_ts=NOW - timedelta(hours=1),
                air_temp=70.0,
                spa_temp=98.0,
                set_point_spa=102.0,
                spa_heater=1,
                spa_pump=1,
            )
        ],
    )
    return table


@pytest.fixture
def ui_client(warehouse: MockWarehouse, monkeypatch) -> Iterator[TestClient]:
    service = CaseService(warehouse=warehouse, detector=SlowHeatingDetector())

    def build_test_service() -> CaseService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_case_service", build_test_service)
    monkeypatch.setattr("app.web.build_default_case_service", build_test_service)

    with TestClient(create_app()) as client:
        yield client


def test_index_defaults_to_open_tab_for_all_agencies(ui_client: TestClient) -> None:
    response = ui_client.get("/ui")

    assert response.status_code == 200
    assert "Admin View – All Agencies" in response.text
    assert "Cold Pool" in response.text
    assert "Warm Spa" in response.text
    assert "Fixed Pool" not in response.text
    assert "Open (2)" in response.text
    assert "Resolved (1)" in response.text


def test_index_filters_by_agency_and_tab(ui_client: TestClient) -> None:
    response = ui_client.get("/ui", params={"tab": "resolved", "agency_id": "agency-a"})

    assert response.status_code == 200
    assert "Agency View" in response.text
    assert "Fixed Pool" in response.text
    assert "Cold Pool" not in response.text
    assert "Warm Spa" not in response.text
    assert "agency_id=agency-a" in response.text


def test_detail_shows_slow_heating_banner(ui_client: TestClient) -> None:
    response = ui_client.get("/ui/cases/cold-pool")

    assert response.status_code == 200
    assert "Slow heating likely due to cold weather" in response.text
    assert "0.25°F/hr" in response.text
    assert "On (Standby)" in response.text
    assert "Pool Heater" in response.text
    assert "Spa Heater" not in response.text
    assert "1/10/24, 12:00:00 AM" in response.text


def test_detail_for_spa_uses_spa_columns_without_banner(ui_client: TestClient) -> None:
    response = ui_client.get("/ui/cases/warm-spa")

    assert response.status_code == 200
    assert "Spa Heater" in response.text
    assert 'class="heating"' in response.text
    assert "Slow heating likely" not in response.text


def test_unknown_display_timezone_falls_back_to_pacific(ui_client: TestClient, monkeypatch) -> None:
    from settings import get_settings

    monkeypatch.setenv("DISPLAY_TIMEZONE", "Not/AZone")
    get_settings.cache_clear()

    try:
        index = ui_client.get("/ui")
        detail = ui_client.get("/ui/cases/cold-pool")
    finally:
        get_settings.cache_clear()

    assert index.status_code == 200
    assert detail.status_code == 200
    assert "1/10/24, 12:00:00 AM" in detail.text


def test_detail_missing_case_returns_not_found(ui_client: TestClient) -> None:
    response = ui_client.get("/ui/cases/nope")

    assert response.status_code == 404


def test_note_form_redirects_back_to_detail(ui_client: TestClient) -> None:
    response = ui_client.post(
        "/ui/cases/cold-pool/notes",
        data={"text": "asked owner to cover pool", "agency_id": "agency-a"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"].endswith("/ui/cases/cold-pool?agency_id=agency-a")

    detail = ui_client.get("/ui/cases/cold-pool")
    assert "asked owner to cover pool" in detail.text


def test_note_form_rejects_short_text(ui_client: TestClient) -> None:
    response = ui_client.post("/ui/cases/cold-pool/notes", data={"text": "x"})

    assert response.status_code == 400
    assert "Note text required" in response.text


def test_resolve_form_resolves_case(ui_client: TestClient, warehouse: MockWarehouse) -> None:
    response = ui_client.post(
        "/ui/cases/warm-spa/resolve",
        data={"resolved_reason": "thermostat recalibrated"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    case = warehouse.get_case("warm-spa")
    assert case is not None and case.status == CaseStatus.resolved

    detail = ui_client.get("/ui/cases/warm-spa")
    assert "Resolve Case" not in detail.text
    assert "thermostat recalibrated" in detail.text


def test_resolve_form_on_resolved_case_conflicts(ui_client: TestClient) -> None:
    response = ui_client.post(
        "/ui/cases/fixed-pool/resolve", data={"resolved_reason": "closing it twice"}
    )

    assert response.status_code == 409
    assert "is not open" in response.text
