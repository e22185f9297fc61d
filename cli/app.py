from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from app.schemas import CaseDetail, CaseSummary, SnapshotRecord
from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_case, render_case_list, render_health
from services.case_service import CASE_TABS, filter_cases
from services.slow_heating import SlowHeatingDetector


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Review, annotate and resolve PoolPilot alert cases.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Alerts review API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds before an API request is abandoned.",
    ),
    tz_name: Optional[str] = typer.Option(
        None,
        "--timezone",
        help="Timezone for displayed timestamps (defaults to DISPLAY_TIMEZONE env).",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(
        base_url=base_url,
        request_timeout=timeout,
        display_timezone=tz_name,
    )
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Check the service and report how many cases it holds."""
    state = _get_state(ctx)
    render_health(state.client.health())


@app.command("list")
def list_command(
    ctx: typer.Context,
    tab: str = typer.Option("open", "--tab", help="One of: open, resolved, all."),
    agency_id: Optional[str] = typer.Option(None, "--agency", help="Only show this agency's cases."),
) -> None:
    """List cases the way the dashboard tabs show them."""
    if tab not in CASE_TABS:
        raise typer.BadParameter(f"tab must be one of: {', '.join(CASE_TABS)}", param_hint="--tab")
    state = _get_state(ctx)
    cases = [CaseSummary.model_validate(row) for row in state.client.list_cases()]
    render_case_list(filter_cases(cases, tab=tab, agency_id=agency_id), state.config.display_timezone)


@app.command("show")
def show_command(
    ctx: typer.Context,
    case_id: str = typer.Argument(..., help="Case identifier."),
) -> None:
    """Show a case, its snapshot window and the slow heating advisory."""
    state = _get_state(ctx)
    case = CaseDetail.model_validate(state.client.get_case(case_id))
    snapshots = [SnapshotRecord.model_validate(row) for row in state.client.get_snapshots(case_id)]
    assessment = SlowHeatingDetector().assess(
        (row.to_snapshot() for row in snapshots), case.body_type
    )
    render_case(case, snapshots, assessment, state.config.display_timezone)


@app.command("note")
def note_command(
    ctx: typer.Context,
    case_id: str = typer.Argument(..., help="Case identifier."),
    text: str = typer.Argument(..., help="Note text."),
) -> None:
    """Append a note to an open case."""
    state = _get_state(ctx)
    note = state.client.add_note(case_id, text)
    typer.secho(f"Note added. id={note.get('id')}", fg=typer.colors.GREEN)


@app.command("resolve")
def resolve_command(
    ctx: typer.Context,
    case_id: str = typer.Argument(..., help="Case identifier."),
    reason: str = typer.Argument(..., help="Why the case is resolved (min 5 characters)."),
) -> None:
    """Resolve an open case. A new case opens automatically if the issue persists."""
    state = _get_state(ctx)
    resolved_id = state.client.resolve_case(case_id, reason)
    typer.secho(f"Case resolved. case_id={resolved_id}", fg=typer.colors.GREEN)
