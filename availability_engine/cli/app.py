"""
Developer console for exercising the engine from a shell, using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import EngineConfig, get_default_config_path
from ..domain.exceptions import SchedulingError
from ..services.scheduling import SchedulingFacade

app = typer.Typer(
    name="availability-engine",
    help="Inspect availability, recurrence and timezone calculations",
    add_completion=False,
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./availability.yaml"),
]
BusyOption = Annotated[
    Optional[List[str]],
    typer.Option("--busy", "-b", help="Busy interval as START/END (ISO 8601), repeatable"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
):
    """Availability engine developer console."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _load_facade(config_file: Optional[Path]) -> SchedulingFacade:
    """Build a facade from an explicit config, the default config file, or defaults."""
    if config_file is not None:
        config = EngineConfig.load_from_yaml(config_file)
    else:
        default_path = get_default_config_path()
        config = EngineConfig.load_from_yaml(default_path) if default_path.exists() else EngineConfig()
    return SchedulingFacade(config=config)


def _parse_busy(values: Optional[List[str]]) -> List[dict]:
    busy = []
    for value in values or []:
        start, separator, end = value.partition("/")
        if not separator:
            raise typer.BadParameter(f"Expected START/END, got {value!r}", param_hint="--busy")
        busy.append({"start": start.strip(), "end": end.strip()})
    return busy


def _parse_date(value: str, option: str):
    try:
        return pendulum.from_format(value, "YYYY-MM-DD").date()
    except ValueError as e:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}: {e}", param_hint=option)


def _print_slots(slots, tz: str) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", style="dim")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("Minutes", justify="right")

    for idx, slot in enumerate(slots, 1):
        table.add_row(
            str(idx),
            slot.start.in_timezone(tz).format("ddd YYYY-MM-DD HH:mm"),
            slot.end.in_timezone(tz).format("HH:mm"),
            str(slot.duration_minutes),
        )

    console.print(table)


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


@app.command("validate-tz")
def validate_tz(
    timezone: Annotated[str, typer.Argument(help="IANA timezone identifier")],
):
    """
    Check whether a timezone identifier resolves.
    """
    facade = SchedulingFacade()
    if facade.validate_time_zone(timezone):
        console.print(f"[green]✓ {timezone} is a valid time zone[/green]")
        return

    console.print(f"[red]✗ {timezone} is not a valid time zone[/red]")
    raise typer.Exit(1)


@app.command()
def convert(
    value: Annotated[str, typer.Argument(help="ISO 8601 datetime; without offset it is read in --from")],
    source_tz: Annotated[str, typer.Option("--from", help="Source time zone")] = "UTC",
    target_tz: Annotated[str, typer.Option("--to", help="Target time zone")] = "UTC",
):
    """
    Convert a datetime between time zones.

    Examples:

        availability-engine convert 2025-01-15T12:00:00Z --to America/New_York
        availability-engine convert "2025-03-30 02:30" --from Europe/Berlin --to UTC
    """
    try:
        converted = SchedulingFacade().convert_time_zone(value, source_tz, target_tz)
    except SchedulingError as e:
        _fail(e)

    console.print(converted.to_iso8601_string())


@app.command()
def slots(
    start: Annotated[str, typer.Option("--start", help="Window start (ISO 8601)")],
    end: Annotated[str, typer.Option("--end", help="Window end (ISO 8601)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Slot duration in minutes")] = 30,
    busy: BusyOption = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="Business-hours time zone")] = None,
    buffer: Annotated[Optional[int], typer.Option("--buffer", help="Buffer around busy intervals in minutes")] = None,
    config_file: ConfigOption = None,
):
    """
    List available slots in a window.

    Examples:

        availability-engine slots --start 2025-01-15T09:00:00Z --end 2025-01-15T17:00:00Z -d 60
        availability-engine slots --start 2025-01-15T09:00:00Z --end 2025-01-15T17:00:00Z \\
            --busy 2025-01-15T10:00:00Z/2025-01-15T11:00:00Z --buffer 15
    """
    try:
        facade = _load_facade(config_file)
        display_tz = tz or facade.config.default_timezone
        found = facade.find_available_slots(
            window_start=start,
            window_end=end,
            duration_minutes=duration,
            busy_intervals=_parse_busy(busy),
            tz=tz,
            buffer_minutes=buffer,
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if not found:
        console.print("[yellow]⚠ No available slots found.[/yellow]")
        return

    console.print(f"[bold green]✓ {len(found)} available slot(s):[/bold green]")
    _print_slots(found, display_tz)


@app.command("next-slot")
def next_slot(
    from_instant: Annotated[str, typer.Option("--from", help="Search start (ISO 8601)")],
    duration: Annotated[int, typer.Option("--duration", "-d", help="Slot duration in minutes")] = 30,
    busy: BusyOption = None,
    tz: Annotated[Optional[str], typer.Option("--tz", help="Business-hours time zone")] = None,
    config_file: ConfigOption = None,
):
    """
    Show the next available slot within the search horizon.
    """
    try:
        facade = _load_facade(config_file)
        display_tz = tz or facade.config.default_timezone
        slot = facade.get_next_available_slot(
            from_instant=from_instant,
            duration_minutes=duration,
            busy_intervals=_parse_busy(busy),
            tz=tz,
        )
    except (SchedulingError, FileNotFoundError, ValueError) as e:
        _fail(e)

    if slot is None:
        console.print(
            f"[yellow]⚠ Nothing free within {facade.config.horizon_days} day(s).[/yellow]"
        )
        raise typer.Exit(1)

    _print_slots([slot], display_tz)


@app.command()
def occurrences(
    recurrence_type: Annotated[str, typer.Argument(help="daily, weekly or monthly")],
    start: Annotated[str, typer.Option("--start", help="First date (YYYY-MM-DD)")],
    end: Annotated[str, typer.Option("--end", help="Last date (YYYY-MM-DD)")],
    interval: Annotated[int, typer.Option("--interval", "-i", help="Repeat every N days/weeks/months")] = 1,
    days: Annotated[
        Optional[List[int]],
        typer.Option("--day", help="Weekday for weekly rules (0=Sunday ... 6=Saturday), repeatable"),
    ] = None,
    day_of_month: Annotated[Optional[int], typer.Option("--day-of-month", help="Day for monthly rules")] = None,
):
    """
    Expand a recurrence rule into dates.

    Examples:

        availability-engine occurrences daily --start 2025-01-06 --end 2025-01-12
        availability-engine occurrences weekly --day 1 --day 3 --interval 2 --start 2025-01-05 --end 2025-02-28
    """
    pattern = {
        "type": recurrence_type,
        "interval": interval,
        "daysOfWeek": days or None,
        "dayOfMonth": day_of_month,
    }

    try:
        dates = SchedulingFacade().generate_recurring_occurrences(
            pattern,
            _parse_date(start, "--start"),
            _parse_date(end, "--end"),
        )
    except SchedulingError as e:
        _fail(e)

    for occurrence in dates:
        console.print(f"  {occurrence.format('ddd YYYY-MM-DD')}")
    console.print(f"\n[bold]{len(dates)}[/bold] occurrence(s)")


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]availability-engine[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
