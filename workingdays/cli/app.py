"""
Main CLI application using Typer.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..config import AppConfig, load_config
from ..adapters.json_holiday_store import JsonHolidayStore
from ..domain.exceptions import WorkingDaysError
from ..services.calculation import CalculationRequest
from ..services.wiring import build_calculation_service, build_holiday_cache

app = typer.Typer(
    name="workingdays",
    help="Add business days and hours on the Bogotá working calendar",
    add_completion=False
)

holidays_app = typer.Typer(help="Inspect and refresh the cached holiday list")
app.add_typer(holidays_app, name="holidays")

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]

WEEKDAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _load_config_or_exit(config_file: Optional[Path]) -> AppConfig:
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)
    return config


def _first_error_message(exc: ValidationError) -> str:
    """Return the first validation message without pydantic's 'Value error, ' prefix."""
    message = exc.errors()[0]["msg"]
    return message.removeprefix("Value error, ")


async def _run_calculation(config: AppConfig, request: CalculationRequest) -> str:
    cache = build_holiday_cache(config)
    service = build_calculation_service(config, holiday_source=cache)
    try:
        return await service.calculate(request)
    finally:
        await cache.wait_for_pending_writes()


@app.command()
def calculate(
    days: Annotated[Optional[int], typer.Option("--days", "-d", help="Working days to add")] = None,
    hours: Annotated[Optional[int], typer.Option("--hours", "-H", help="Working hours to add")] = None,
    date: Annotated[Optional[str], typer.Option("--date", help="Start instant in UTC, e.g. 2025-09-26T22:00:00Z. Defaults to now.")] = None,
    config_file: ConfigOption = None,
):
    """
    Calculate the instant reached after adding working days and hours.

    Examples:

        workingdays calculate --hours 1 --date 2025-09-26T22:00:00Z

        workingdays calculate --days 5 --hours 4 --date 2025-04-10T15:00:00Z
    """
    config = _load_config_or_exit(config_file)

    try:
        request = CalculationRequest(days=days, hours=hours, date=date)
    except ValidationError as e:
        console.print_json(data={"error": "InvalidParameters", "message": _first_error_message(e)})
        raise typer.Exit(1)

    try:
        result = asyncio.run(_run_calculation(config, request))
    except Exception:
        logger.exception("Calculation failed")
        console.print_json(data={
            "error": "InternalServerError",
            "message": "An unexpected error occurred.",
        })
        raise typer.Exit(1)

    console.print_json(data={"date": result})


@holidays_app.command("list")
def list_holidays(config_file: ConfigOption = None):
    """
    List the holidays currently held in the local store.
    """
    config = _load_config_or_exit(config_file)
    store = JsonHolidayStore(config.holidays.store_path)

    try:
        holidays = asyncio.run(store.find_all())
    except WorkingDaysError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not holidays:
        console.print(
            "[yellow]No holidays stored yet.[/yellow] "
            "Run [bold]workingdays holidays refresh[/bold] to fetch them."
        )
        return

    table = Table(
        title=f"Holidays ({store.path})",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("Date", style="bold yellow")
    table.add_column("Weekday", style="dim")
    table.add_column("Name")

    for holiday in holidays:
        table.add_row(
            holiday.date.isoformat(),
            WEEKDAY_NAMES[holiday.date.weekday()],
            holiday.name
        )

    console.print()
    console.print(table)
    console.print()


@holidays_app.command("refresh")
def refresh_holidays(config_file: ConfigOption = None):
    """
    Fetch holidays from the remote endpoint and update the local store.
    """
    config = _load_config_or_exit(config_file)
    cache = build_holiday_cache(config)

    try:
        holidays = asyncio.run(cache.refresh())
    except WorkingDaysError as e:
        console.print(f"[bold red]✗ Error:[/bold red] {e}")
        raise typer.Exit(1)

    if not holidays:
        console.print("[yellow]⚠ The holiday endpoint returned no usable dates.[/yellow]")
        return

    console.print(
        f"[green]✓ {len(holidays)} holidays stored in {config.holidays.store_path}[/green]"
    )


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]workingdays[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
