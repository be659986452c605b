"""Command-line interface for orvium-tools."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import typer
from rich.console import Console
from rich.table import Table

from orvium_tools.errors import ConfigError, DepositToolError
from orvium_tools.logs import configure_logging
from orvium_tools.result import Err, Result
from orvium_tools.services import DepositExporter, DepositImporter, ImportOutcome, UserSummaryFetcher
from orvium_tools.settings import Settings, get_settings
from orvium_tools.utils import normalize_orcid

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(help="orvium-tools – import and export Orvium deposits")


def _load_settings() -> Settings:
    try:
        settings = get_settings()
    except ConfigError as exc:
        err_console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    configure_logging(settings.log_level)
    return settings


def _validate_orcid(value: str) -> str:
    orcid = normalize_orcid(value)
    if orcid is None:
        raise typer.BadParameter("Invalid ORCID. Expected format: 0000-0000-0000-0000")
    return orcid


def _validate_not_blank(value: str) -> str:
    if not value.strip():
        raise typer.BadParameter("Value must not be empty.")
    return value


async def _run_import(settings: Settings, directory: Path, community: str) -> ImportOutcome:
    async with httpx.AsyncClient(timeout=settings.timeout) as client:
        importer = DepositImporter(client=client, settings=settings)
        return await importer.import_deposit(directory, community)


async def _run_export(settings: Settings, deposit_id: str, directory: Path) -> Path:
    async with httpx.AsyncClient(timeout=settings.timeout) as client:
        exporter = DepositExporter(client=client, settings=settings)
        return await exporter.export_deposit(deposit_id, directory)


async def _run_summary(settings: Settings, orcid: str) -> Result[Any]:
    async with httpx.AsyncClient(timeout=settings.timeout) as client:
        return await UserSummaryFetcher(client=client, settings=settings).fetch(orcid)


@app.command("import")
def import_deposit(
    directory: Path = typer.Argument(
        ...,
        file_okay=False,
        readable=True,
        resolve_path=True,
        help="Directory holding meta.json and the manuscript",
    ),
    community: str = typer.Argument(
        ..., callback=_validate_not_blank, help="Community the deposit is imported into"
    ),
) -> None:
    """Import a deposit directory into a community."""
    settings = _load_settings()
    outcome = asyncio.run(_run_import(settings, directory, community))
    if not outcome.succeeded:
        err_console.print(
            f"[red]Import failed during {outcome.stage.value}[/red]: {outcome.error}"
        )
        if outcome.deposit_id:
            err_console.print(
                f"[yellow]Deposit {outcome.deposit_id} was created but its manuscript is incomplete."
            )
        raise typer.Exit(code=1)
    console.print(f"[green]Deposit imported successfully:[/green] {outcome.title}")


@app.command("export")
def export_deposit(
    deposit_id: str = typer.Argument(..., callback=_validate_not_blank, help="Deposit identifier"),
    download_directory: Path = typer.Argument(
        ..., file_okay=False, resolve_path=True, help="Directory receiving the zip archive"
    ),
) -> None:
    """Export a deposit's metadata and manuscript as deposit_<id>.zip."""
    settings = _load_settings()
    try:
        archive = asyncio.run(_run_export(settings, deposit_id, download_directory))
    except DepositToolError as exc:
        err_console.print(f"[red]Error during deposit export:[/red] {exc}")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]ZIP file created successfully:[/green] {archive}")


@app.command("summary")
def user_summary(
    orcid: str = typer.Argument(..., callback=_validate_orcid, help="ORCID, e.g. 0000-0002-1825-0097"),
) -> None:
    """Print a user's contribution summary as JSON."""
    settings = _load_settings()
    result = asyncio.run(_run_summary(settings, orcid))
    if isinstance(result, Err):
        err_console.print(f"[red]Error during user summary retrieval:[/red] {result.failure}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(result.value, indent=2))


@app.command()
def config(
    json_output: bool = typer.Option(False, "--json", help="Output settings as JSON"),
) -> None:
    """Display the resolved settings with credentials masked."""
    settings = _load_settings()
    payload = settings.masked()
    if json_output:
        typer.echo(json.dumps(payload, indent=2))
        return
    table = Table(title="orvium-tools settings")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in payload.items():
        table.add_row(key, str(value))
    console.print(table)


def import_main() -> None:
    typer.run(import_deposit)


def export_main() -> None:
    typer.run(export_deposit)


def summary_main() -> None:
    typer.run(user_summary)


if __name__ == "__main__":  # pragma: no cover
    app()
