"""Typer based command line entry points for the machine recording system."""

from __future__ import annotations

import json
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from machinerec.api import RecordingSystem
from machinerec.core.coordinates import parse_submission_date, sheet_name_for_date
from machinerec.core.errors import MachineRecError
from machinerec.core.layout import LOG_COLUMNS, LOG_SHEET_NAME
from machinerec.core.logger import get_logger, parse_level
from machinerec.core.settings import Settings, load_settings
from machinerec_persist.stores.base_store import StoreError

app = typer.Typer(help="Record daily machine status submissions and build the summary report.")


def _system(ctx: typer.Context) -> RecordingSystem:
    settings: Settings = ctx.obj["settings"]
    try:
        return RecordingSystem.from_settings(settings)
    except (MachineRecError, StoreError) as exc:
        typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2) from exc


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
    root: Optional[Path] = typer.Option(None, help="Alternate data root (defaults to ~/MachineRec)."),
    schema: Optional[Path] = typer.Option(None, help="Schema YAML overriding the packaged one."),
    workbook: Optional[str] = typer.Option(None, help="Workbook file name under <root>/store."),
) -> None:
    """Configure settings and logging before executing commands."""

    try:
        level_value = parse_level(log_level)
        settings = load_settings(root=root, schema_path=schema, workbook=workbook)
    except MachineRecError as exc:
        raise typer.BadParameter(str(exc)) from exc

    logger = get_logger(settings.log_dir)
    logger.setLevel(level_value)
    ctx.obj = {"settings": settings}


@app.command("submit")
def submit_command(
    ctx: typer.Context,
    source: str = typer.Argument(..., help="JSON file with one submission, or '-' for stdin."),
) -> None:
    """Merge one operator submission into its date sheet."""

    if source == "-":
        body = sys.stdin.read()
    else:
        path = Path(source)
        if not path.is_file():
            raise typer.BadParameter(f"Submission file not found: {source}")
        body = path.read_text(encoding="utf-8")

    response = _system(ctx).submit(body)
    typer.echo(json.dumps(response, ensure_ascii=False))
    if response["status"] != "success":
        raise typer.Exit(code=1)


@app.command("status")
def status_command(ctx: typer.Context) -> None:
    """Print the status probe (schema and liveness)."""

    typer.echo(json.dumps(_system(ctx).status(), ensure_ascii=False, indent=2))


@app.command("summary")
def summary_command(
    ctx: typer.Context,
    publish: bool = typer.Option(True, "--publish/--no-publish", help="Rewrite the Summary sheet."),
) -> None:
    """Rebuild totals across every daily sheet."""

    system = _system(ctx)
    try:
        summary = system.refresh_summary(publish=publish)
    except StoreError as exc:
        typer.secho(f"Summary failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    if summary.is_empty:
        typer.echo(summary.marker)
        return
    typer.echo(f"Total Daily Sheets: {summary.sheet_count}")
    frame = summary.to_dataframe()
    frame = frame[frame["TOTAL"] > 0]
    if frame.empty:
        typer.echo("All totals are zero.")
    else:
        typer.echo(frame.to_string(index=False))


@app.command("log")
def log_command(
    ctx: typer.Context,
    limit: int = typer.Option(10, min=1, help="Number of most recent submissions to show."),
) -> None:
    """Show the most recent submission log rows."""

    system = _system(ctx)
    if not system.store.list_sheets(lambda name: name == LOG_SHEET_NAME):
        typer.echo("No submissions logged yet.")
        return
    rows = system.store.read_rows(system.store.get_or_create(LOG_SHEET_NAME))
    body = [list(row[: len(LOG_COLUMNS)]) for row in rows[1:]]
    frame = pd.DataFrame(body, columns=list(LOG_COLUMNS))
    preview = frame.drop(columns=["RawPayload"]).tail(limit)
    typer.echo(f"Logged submissions: {len(frame)}")
    if not preview.empty:
        typer.echo(preview.to_string(index=False))


@app.command("setup-check")
def setup_check_command(
    ctx: typer.Context,
    on_date: Optional[str] = typer.Option(None, "--date", help="Date to prepare (YYYY-MM-DD, default today)."),
) -> None:
    """Create the date sheet for a day and report the configured schema."""

    system = _system(ctx)
    try:
        target = parse_submission_date(on_date) if on_date else date.today()
    except MachineRecError as exc:
        raise typer.BadParameter(str(exc)) from exc
    sheet_name = sheet_name_for_date(target)
    with system.store.exclusive(sheet_name):
        grid = system.store.get_or_create(sheet_name)
    typer.echo(f"Setup verified! Sheet ready: {grid.name}")
    typer.echo(f"Date used: {target.isoformat()}")
    typer.echo(f"Configured factories: {', '.join(system.schema.factories)}")
    typer.echo(f"Machine types: {len(system.schema.machine_types)}")
    typer.echo(f"Status types: {len(system.schema.status_types)}")


@app.command("health")
def health_command(ctx: typer.Context) -> None:
    """Execute store health checks and pretty-print the outcome."""

    health = _system(ctx).store.healthcheck()
    status = "OK" if health.is_healthy() else "FAIL"
    typer.echo(f"[{status}] sheet store")
    for dep, ok in health.dependencies.items():
        typer.echo(f"  dependency {dep}: {'OK' if ok else 'MISSING'}")
    for path, ok in health.writable_paths.items():
        typer.echo(f"  writable {path}: {'yes' if ok else 'no'}")
    if health.locked_paths:
        typer.echo(f"  locked: {', '.join(health.locked_paths)}")
    if health.issues:
        typer.echo("  issues:")
        for issue in health.issues:
            typer.echo(f"    - {issue}")
    if not health.is_healthy():
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
