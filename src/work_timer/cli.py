"""Command-line interface for the work timer."""

from __future__ import annotations

import logging
from datetime import timedelta
from pathlib import Path
from typing import Optional

import typer

from .config import TimerSettings
from .models import ReportPeriod
from .paths import get_db_path
from .reporting import ReportPrinter, format_duration
from .runtime import open_runtime
from .server_runner import serve_api

app = typer.Typer(help="Track active time against work items.")


@app.callback(no_args_is_help=True)
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs."),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the timer SQLite database.",
    ),
    idle_minutes: float = typer.Option(
        5.0,
        "--idle-threshold",
        min=0.1,
        help="Minutes of inactivity before the timer pauses itself.",
    ),
    limit_hours: float = typer.Option(
        3.5,
        "--elapsed-limit",
        min=0.0,
        help="Cap recorded hours for forgotten timers (0 disables).",
    ),
    pomodoro: bool = typer.Option(
        False, "--pomodoro/--no-pomodoro", help="Remind about breaks every 25 minutes."
    ),
    auto_resume: bool = typer.Option(
        True,
        "--auto-resume/--no-auto-resume",
        help="Resume an inactivity-paused timer on the next activity signal.",
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    ctx.obj = {
        "db_path": db_path or get_db_path(),
        "settings": TimerSettings.from_intervals(
            inactivity_minutes=idle_minutes,
            elapsed_limit_hours=limit_hours,
            pomodoro=pomodoro,
            auto_resume=auto_resume,
        ),
    }


@app.command()
def start(
    ctx: typer.Context,
    work_item_id: int = typer.Argument(..., min=1, help="Work item to track."),
    title: str = typer.Argument(..., help="Work item title."),
) -> None:
    """Start tracking a work item."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        try:
            started = runtime.engine.start(work_item_id, title)
        except ValueError as exc:
            raise typer.BadParameter(str(exc)) from exc
        if not started:
            record = runtime.engine.snapshot()
            typer.echo(f"Timer already {runtime.engine.state.value}", err=True)
            if record is not None:
                typer.echo(f"Stop #{record.work_item_id} first.", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Started #{work_item_id}.")


@app.command()
def pause(ctx: typer.Context) -> None:
    """Pause the running timer."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        if not runtime.engine.pause():
            typer.echo("No running timer to pause.", err=True)
            raise typer.Exit(code=1)
        typer.echo(f"Paused at {format_duration(runtime.engine.elapsed_seconds())}.")


@app.command()
def resume(ctx: typer.Context) -> None:
    """Resume a paused timer."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        if not runtime.engine.resume():
            typer.echo("No paused timer to resume.", err=True)
            raise typer.Exit(code=1)
        typer.echo("Resumed.")


@app.command()
def stop(ctx: typer.Context) -> None:
    """Stop the timer and record a time entry."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        result = runtime.engine.stop()
        if result is None:
            typer.echo("No timer running.", err=True)
            raise typer.Exit(code=1)
        typer.echo(
            f"Stopped #{result.work_item_id}: {format_duration(result.duration)} "
            f"({result.hours_decimal:.2f}h)"
        )
        if result.cap_applied:
            typer.echo(f"Capped at {result.cap_limit_hours:.2f}h.")


@app.command()
def activity(ctx: typer.Context) -> None:
    """Signal user activity (resumes a timer paused for inactivity)."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        runtime.engine.record_activity()
        typer.echo(f"Timer {runtime.engine.state.value}.")


@app.command()
def status(ctx: typer.Context) -> None:
    """Show the current timer."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        ReportPrinter().print_status(runtime.engine.snapshot(), runtime.clock.now())


@app.command()
def report(
    ctx: typer.Context,
    period: ReportPeriod = typer.Option(
        ReportPeriod.TODAY, "--period", "-p", help="Reporting window."
    ),
) -> None:
    """Summarize recorded time per work item."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        ReportPrinter().print_report(runtime.ledger.report(period))


@app.command()
def entries(ctx: typer.Context) -> None:
    """List every recorded time entry."""
    with open_runtime(ctx.obj["db_path"], ctx.obj["settings"]) as runtime:
        ReportPrinter().print_entries(runtime.ledger.entries())


@app.command()
def web(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the API."),
    port: int = typer.Option(
        8765, "--port", min=1, max=65535, help="TCP port for the API."
    ),
    check_seconds: float = typer.Option(
        10.0,
        "--check-interval",
        min=1.0,
        help="Seconds between inactivity checks.",
    ),
    open_browser: bool = typer.Option(
        False,
        "--open-browser/--no-open-browser",
        help="Open the API docs in your default browser.",
    ),
) -> None:
    """Serve the timer over HTTP with inactivity monitoring."""
    settings: TimerSettings = ctx.obj["settings"]
    settings.inactivity_check_interval = timedelta(seconds=check_seconds)
    serve_api(
        host=host,
        port=port,
        db_path=ctx.obj["db_path"],
        settings=settings,
        open_docs=open_browser,
    )
