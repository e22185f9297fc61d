from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer

from app.formatting import format_local_time, heater_label, pump_label, reading
from app.schemas import CaseDetail, CaseSummary, SnapshotRecord
from services.slow_heating import SlowHeatingAssessment


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_health(payload: Dict[str, Any]) -> None:
    healthy = bool(payload.get("ok"))
    typer.secho(
        f"ok: {healthy}",
        fg=typer.colors.GREEN if healthy else typer.colors.RED,
    )
    typer.echo(f"case_count: {payload.get('case_count')}")


def render_case_list(cases: List[CaseSummary], tz_name: str) -> None:
    if not cases:
        typer.echo("No cases to show.")
        return
    for case in cases:
        typer.echo(
            "  ".join(
                [
                    case.case_id,
                    case.status.value,
                    case.body_type.value,
                    reading(case.system_name),
                    reading(case.agency_name),
                    reading(case.issue_type),
                    format_local_time(case.opened_at, tz_name),
                ]
            )
        )


def render_case(
    case: CaseDetail,
    snapshots: List[SnapshotRecord],
    assessment: SlowHeatingAssessment,
    tz_name: str,
) -> None:
    echo_heading(case.system_name or case.system_id)
    echo_key_values(
        [
            ("case_id", case.case_id),
            ("agency", reading(case.agency_name)),
            ("body_type", case.body_type.value),
            ("issue", reading(case.issue_type)),
            ("status", case.status.value),
            ("opened_at", format_local_time(case.opened_at, tz_name)),
            ("resolved_at", format_local_time(case.resolved_at, tz_name)),
            ("resolved_reason", reading(case.resolved_reason)),
            ("minutes_open", case.minutes_open),
        ]
    )

    if assessment.detected:
        typer.echo()
        typer.secho(
            (
                "Slow heating likely due to cold weather: "
                f"{assessment.heating_rate:.2f}°F/hr with average air "
                f"{assessment.average_air_temperature:.1f}°F."
            ),
            fg=typer.colors.YELLOW,
        )

    typer.echo()
    echo_heading("Notes")
    if case.notes:
        for note in case.notes:
            typer.echo(
                f"  - [{note.type.value}] {format_local_time(note.created_at, tz_name)} "
                f"{note.author}: {note.text}"
            )
    else:
        typer.echo("No notes yet.")

    typer.echo()
    echo_heading("Snapshots")
    if not snapshots:
        typer.echo("No snapshot data.")
        return
    spa = case.body_type.value == "spa"
    for row in snapshots:
        if spa:
            temp, set_point = row.spa_temp, row.set_point_spa
            heater, pump = row.spa_heater, row.spa_pump
        else:
            temp, set_point = row.pool_temp, row.set_point_pool
            heater, pump = row.pool_heater, row.filter_pump
        typer.echo(
            f"  {format_local_time(row.snapshot_ts, tz_name)}"
            f"  air={reading(row.air_temp)}"
            f"  temp={reading(temp)}"
            f"  set={reading(set_point)}"
            f"  heater={heater_label(heater)}"
            f"  pump={pump_label(pump)}"
        )
