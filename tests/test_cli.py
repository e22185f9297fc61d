from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Dict, List

import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.config import load_config

OPENED = datetime(2024, 1, 10, 8, 0)


def _case(case_id: str, status: str = "open", agency_id: str = "agency-a") -> Dict[str, Any]:
    return {
        "case_id": case_id,
        "system_id": f"sys-{case_id}",
        "system_name": f"System {case_id}",
        "agency_id": agency_id,
        "agency_name": agency_id.title(),
        "body_type": "pool",
        "issue_type": "heater_not_heating",
        "status": status,
        "notes": [],
        "opened_at": {"value": "2024-01-10T08:00:00.000Z"},
        "resolved_at": None,
        "minutes_open": 240,
    }


def _snapshots() -> List[Dict[str, Any]]:
    return [
        {
            "snapshot_ts": (OPENED + timedelta(minutes=48 * index)).isoformat() + "Z",
            "air_temp": 50.0,
            "pool_temp": 60.0 + 0.2 * index,
            "set_point_pool": 85.0,
            "pool_heater": 1,
            "filter_pump": 1,
        }
        for index in range(6)
    ]


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.cases = [
            _case("c1"),
            _case("c2", status="resolved"),
            _case("c3", agency_id="agency-b"),
        ]
        self.snapshots = _snapshots()
        self.notes: List[tuple[str, str]] = []
        self.resolved: List[tuple[str, str]] = []
        self.closed = False

    def health(self) -> Dict[str, Any]:
        return {"ok": True, "case_count": len(self.cases)}

    def list_cases(self) -> List[Dict[str, Any]]:
        return self.cases

    def get_case(self, case_id: str) -> Dict[str, Any]:
        payload = _case(case_id)
        payload["resolved_reason"] = None
        return payload

    def get_snapshots(self, case_id: str) -> List[Dict[str, Any]]:
        return self.snapshots

    def add_note(self, case_id: str, text: str) -> Dict[str, Any]:
        self.notes.append((case_id, text))
        return {"id": "note-1", "text": text}

    def resolve_case(self, case_id: str, reason: str) -> str:
        self.resolved.append((case_id, reason))
        return case_id

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    client = StubClient(config=None)

    def factory(config):
        client.config = config
        return client

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return client


def test_health_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["health"])

    assert result.exit_code == 0
    assert "case_count: 3" in result.stdout
    assert stub.closed is True


def test_list_defaults_to_open_cases(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["list"])

    assert result.exit_code == 0
    assert "c1" in result.stdout
    assert "c3" in result.stdout
    assert "c2" not in result.stdout


def test_list_filters_by_tab_and_agency(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["list", "--tab", "all", "--agency", "agency-a"])

    assert result.exit_code == 0
    assert "c1" in result.stdout
    assert "c2" in result.stdout
    assert "c3" not in result.stdout


def test_list_rejects_unknown_tab(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["list", "--tab", "archived"])

    assert result.exit_code != 0


def test_show_renders_case_and_slow_heating_advisory(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--timezone", "UTC", "show", "c1"])

    assert result.exit_code == 0
    assert "case_id: c1" in result.stdout
    assert "opened_at: 1/10/24, 8:00:00 AM" in result.stdout
    assert "Slow heating likely due to cold weather" in result.stdout
    assert "heater=On" in result.stdout
    assert stub.config.display_timezone == "UTC"


def test_show_without_slow_heating(runner: CliRunner, stub: StubClient) -> None:
    for row in stub.snapshots:
        row["air_temp"] = 72.0

    result = runner.invoke(app, ["show", "c1"])

    assert result.exit_code == 0
    assert "Slow heating" not in result.stdout


def test_note_and_resolve_commands(runner: CliRunner, stub: StubClient) -> None:
    note = runner.invoke(app, ["note", "c1", "called the owner"])
    resolve = runner.invoke(app, ["resolve", "c1", "heater relit"])

    assert note.exit_code == 0
    assert "Note added. id=note-1" in note.stdout
    assert resolve.exit_code == 0
    assert "Case resolved. case_id=c1" in resolve.stdout
    assert stub.notes == [("c1", "called the owner")]
    assert stub.resolved == [("c1", "heater relit")]


def test_base_url_option_reaches_client(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://alerts.internal:9000/", "health"])

    assert result.exit_code == 0
    assert stub.config.base_url == "http://alerts.internal:9000"


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://example.test/")
    monkeypatch.setenv("CLI_REQUEST_TIMEOUT", "not-a-number")
    monkeypatch.setenv("DISPLAY_TIMEZONE", "America/Denver")

    config = load_config()

    assert config.base_url == "http://example.test"
    assert config.request_timeout == 30.0
    assert config.display_timezone == "America/Denver"


def test_load_config_ignores_unknown_timezone(monkeypatch) -> None:
    monkeypatch.setenv("DISPLAY_TIMEZONE", "Not/AZone")

    assert load_config().display_timezone == "America/Los_Angeles"
    assert load_config(display_timezone="Mars/Olympus").display_timezone == "America/Los_Angeles"
    assert load_config(display_timezone="Europe/Paris").display_timezone == "Europe/Paris"
