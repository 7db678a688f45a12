"""Habitta operator CLI.

Commands:
- init-db: Create database tables
- load-reference: Load lifespan and climate factor YAML into the database
- predict: Run system predictions for a property
- timeline: Show replacement windows and cost ranges for a property
- plan: Generate seasonal maintenance tasks for a home
- zone: Classify a location into a climate zone
- confidence: Score an install date and show its disclosure state
- serve: Run the HTTP API
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from habitta.climate.zones import derive_climate_zone
from habitta.config import get_config
from habitta.confidence.install import (
    ConfidenceInput,
    confidence_state_from_score,
    get_confidence_level_label,
    get_confidence_state_label,
    score_install_confidence,
)
from habitta.core.logging import configure_logging
from habitta.db.connection import close_db, get_session, init_db
from habitta.db.predictions import get_predictions
from habitta.db.reference import seed_reference_tables
from habitta.errors import HabittaError
from habitta.models import InstallSource
from habitta.planner.service import generate_seasonal_plan
from habitta.prediction.service import build_timelines, run_predictions
from habitta.prediction.timeline import describe_timeline
from habitta.reference.lifespans import ClimateFactorTable, LifespanTable

app = typer.Typer(
    name="habitta",
    help="Habitta - home system predictions and seasonal maintenance planning",
    no_args_is_help=True,
)

console = Console()


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}")


@app.callback()
def main(
    log_level: str | None = typer.Option(None, "--log-level", help="Override LOG_LEVEL"),
):
    configure_logging(log_level)


@app.command(name="init-db")
def init_db_cmd(
    drop: bool = typer.Option(False, "--drop", help="Drop existing tables"),
):
    """Create database tables."""
    config = get_config()
    console.print(f"[bold]Initializing database:[/bold] {config.db.url}")

    if drop:
        console.print("[yellow]Dropping existing tables...[/yellow]")

    async def _init():
        try:
            await init_db(drop=drop)
        finally:
            await close_db()

    asyncio.run(_init())
    console.print("[bold green]✓[/bold green] Database initialized")


@app.command(name="load-reference")
def load_reference_cmd(
    lifespans_path: Path | None = typer.Option(None, "--lifespans", help="Lifespan YAML file"),
    factors_path: Path | None = typer.Option(None, "--factors", help="Climate factor YAML file"),
):
    """Replace the reference tables with YAML contents."""
    config = get_config()
    try:
        lifespans = LifespanTable.from_yaml(lifespans_path or config.lifespan_reference_path)
        factors = ClimateFactorTable.from_yaml(factors_path or config.climate_factors_path)
    except HabittaError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    async def _load():
        async with get_session() as session:
            counts = await seed_reference_tables(session, lifespans, factors)
        await close_db()
        return counts

    n_lifespans, n_factors = asyncio.run(_load())
    console.print(
        f"[bold green]✓[/bold green] Loaded {n_lifespans} lifespan rows and {n_factors} climate factors"
    )


@app.command()
def predict(
    address_id: str = typer.Argument(..., help="Property address_id"),
    as_of: str | None = typer.Option(None, "--as-of", help="Measure ages as of YYYY-MM-DD"),
    model_version: str | None = typer.Option(None, "--model-version", help="Override model version"),
):
    """Run system predictions for a property and show the stored results."""
    as_of_date = _parse_date(as_of)

    async def _predict():
        try:
            async with get_session() as session:
                summary = await run_predictions(
                    session, address_id, as_of=as_of_date, model_version=model_version
                )
                rows = await get_predictions(session, address_id, summary.model_version)
        finally:
            await close_db()
        return summary, rows

    try:
        summary, rows = asyncio.run(_predict())
    except HabittaError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Predictions for {address_id} ({summary.model_version})")
    table.add_column("Field")
    table.add_column("Value")
    table.add_column("Confidence", justify="right")
    table.add_column("Tier")
    for row in rows:
        table.add_row(
            row.field,
            row.predicted_value,
            f"{row.confidence:.2f}",
            str((row.provenance or {}).get("tier", "")),
        )
    console.print(table)
    console.print(f"Run {summary.prediction_run_id}: {summary.predictions_generated} generated")
    if summary.failed_fields:
        console.print(f"[yellow]Failed fields:[/yellow] {', '.join(summary.failed_fields)}")


@app.command()
def timeline(
    address_id: str = typer.Argument(..., help="Property address_id"),
    as_of: str | None = typer.Option(None, "--as-of", help="Project windows as of YYYY-MM-DD"),
):
    """Show replacement windows and cost ranges for a property's major systems."""
    as_of_date = _parse_date(as_of) or date.today()

    async def _timelines():
        try:
            async with get_session() as session:
                return await build_timelines(session, address_id, as_of=as_of_date)
        finally:
            await close_db()

    try:
        timelines = asyncio.run(_timelines())
    except HabittaError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Replacement outlook for {address_id}")
    table.add_column("System")
    table.add_column("Installed")
    table.add_column("Window")
    table.add_column("Cost", justify="right")
    table.add_column("Outlook")
    for item in timelines:
        copy = describe_timeline(item, as_of_date)
        installed = str(item.install.year) if item.install.year else "unknown"
        table.add_row(
            item.label,
            f"{installed} ({item.install.source})",
            f"{item.window.early_year}-{item.window.late_year} ({item.window.uncertainty})",
            f"${item.cost.low:,}-${item.cost.high:,}",
            copy.what_to_expect.headline,
        )
    console.print(table)


@app.command()
def plan(
    home_id: str = typer.Argument(..., help="Home id"),
    months: int | None = typer.Option(None, "--months", help="Planning horizon in months"),
    force: bool = typer.Option(False, "--force", help="Skip deduplication"),
    zone: str | None = typer.Option(None, "--zone", help="Climate zone override"),
):
    """Generate seasonal maintenance tasks for a home."""

    async def _plan():
        try:
            async with get_session() as session:
                result = await generate_seasonal_plan(
                    session, home_id, months=months, force=force, climate_zone_override=zone
                )
        finally:
            await close_db()
        return result

    try:
        result = asyncio.run(_plan())
    except HabittaError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(
        f"[bold green]✓[/bold green] Inserted {result.inserted} of {result.considered} "
        f"tasks (zone: {result.climate_zone.value})"
    )
    if result.known_systems:
        console.print(f"Known systems: {', '.join(result.known_systems)}")


@app.command()
def zone(
    state: str | None = typer.Option(None, "--state"),
    city: str | None = typer.Option(None, "--city"),
    lat: float | None = typer.Option(None, "--lat"),
):
    """Classify a location into a climate zone."""
    console.print(derive_climate_zone(state, city, lat).value)


@app.command()
def confidence(
    source: InstallSource = typer.Argument(..., help="Install date source"),
    month: bool = typer.Option(False, "--month", help="Install month known"),
    corroborated: bool = typer.Option(False, "--corroborated", help="Corroborated by another source"),
    brand: bool = typer.Option(False, "--brand", help="Brand known"),
    model: bool = typer.Option(False, "--model", help="Model known"),
    photo: bool = typer.Option(False, "--photo", help="Photo evidence"),
    conflicting: bool = typer.Option(False, "--conflicting", help="Conflicting dates reported"),
    implausible: bool = typer.Option(False, "--implausible", help="Implausible date"),
    confirmed: bool = typer.Option(False, "--confirmed", help="User confirmed"),
):
    """Score an install date and show its confidence level and UI state."""
    result = score_install_confidence(
        ConfidenceInput(
            install_source=source,
            has_month=month,
            has_corroboration=corroborated,
            has_brand=brand,
            has_model=model,
            has_photo=photo,
            has_conflicting_dates=conflicting,
            has_implausible_date=implausible,
        )
    )
    state = confidence_state_from_score(result.score, user_confirmed=confirmed)

    table = Table(show_header=False)
    table.add_row("Score", f"{result.score:.2f}")
    table.add_row("Level", get_confidence_level_label(result.level))
    table.add_row("State", state.value)
    table.add_row("Badge", get_confidence_state_label(state) or "-")
    table.add_row(
        "Breakdown",
        f"base {result.breakdown.base:.2f} + {result.breakdown.modifiers:.2f} "
        f"- {result.breakdown.penalties:.2f}",
    )
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind"),
    port: int = typer.Option(8000, help="Port to bind"),
    reload: bool = typer.Option(False, help="Enable autoreload (dev only)"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("habitta.web.app:app", host=host, port=port, reload=reload, workers=1)


if __name__ == "__main__":
    app()
