"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, List, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.google_calendar import GoogleCalendarClient
from ..adapters.json_event_source import JsonEventSource
from ..config import AppConfig, AvailabilityPayload, MeetingRequest
from ..domain.aggregator import best_slots
from ..domain.exceptions import TimesyncError
from ..domain.models import DurationUnit
from ..domain.timeutils import format_time
from ..services.planner import CalendarSourceProtocol, MeetingPlanner, check_slot_keys

app = typer.Typer(
    name="timesync",
    help="Find the meeting slot that suits everyone",
    add_completion=False
)

console = Console()

logger = logging.getLogger(__name__)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
EventsOption = Annotated[
    Optional[Path],
    typer.Option("--events", help="JSON file with calendar events to check against.")
]
GoogleOption = Annotated[
    bool,
    typer.Option("--google", help="Check against Google Calendar (token from the configured env variable).")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    TimeSync: generate candidate slots, rank availability and check calendar conflicts.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _fail(error: Exception) -> None:
    console.print(f"[bold red]Error:[/bold red] {error}")
    raise typer.Exit(1)


def _calendar_source(
    config: AppConfig,
    events: Optional[Path],
    google: bool,
) -> Optional[CalendarSourceProtocol]:
    """Pick the calendar source requested on the command line, if any."""
    if events and google:
        raise ValueError("--events and --google cannot be used together.")
    if events:
        logger.debug("Reading busy times from %s", events)
        return JsonEventSource(events, timezone=config.timezone)
    if google:
        logger.debug("Reading busy times from Google Calendar %s", config.google.calendar_id)
        return GoogleCalendarClient.from_config(config.google, timezone=config.timezone)
    return None


def _slot_table(title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Day")
    table.add_column("Time")
    table.add_column("Key", style="dim")
    return table


@app.command()
def slots(
    config_file: ConfigOption = None,
    start: Annotated[Optional[str], typer.Option("--start", help="Start date (YYYY-MM-DD). Defaults to today.")] = None,
    end: Annotated[Optional[str], typer.Option("--end", help="End date (YYYY-MM-DD). Defaults to a week after start.")] = None,
    start_time: Annotated[Optional[str], typer.Option("--from", help="Daily window start (HH:MM)")] = None,
    end_time: Annotated[Optional[str], typer.Option("--to", help="Daily window end (HH:MM)")] = None,
    duration: Annotated[Optional[float], typer.Option("--duration", "-d", help="Meeting duration")] = None,
    hours: Annotated[bool, typer.Option("--hours", help="Read --duration as hours instead of minutes.")] = False,
    days: Annotated[Optional[str], typer.Option("--days", help="all, weekdays or weekends")] = None,
    keys_only: Annotated[bool, typer.Option("--keys", help="Print bare slot keys, one per line.")] = False,
    events: EventsOption = None,
    google: GoogleOption = False,
):
    """
    List the candidate slots of a meeting.

    Examples:

        timesync slots --start 2024-01-01 --end 2024-01-05 --from 09:00 --to 12:00 -d 30

        timesync slots --start 2024-01-06 --end 2024-01-07 --days weekends -d 1 --hours

        timesync slots --start 2024-01-01 --end 2024-01-02 --events busy.json
    """
    try:
        config = AppConfig.load_or_default(config_file)
        tz = config.timezone

        # --hours only changes how an explicit --duration is read
        duration_unit = None
        if duration is not None:
            duration_unit = DurationUnit.HOURS if hours else DurationUnit.MINUTES
            if duration.is_integer():
                duration = int(duration)

        start_date = start or pendulum.now(tz).format("YYYY-MM-DD")
        if end is None:
            end = pendulum.from_format(str(start_date), "YYYY-MM-DD", tz=tz).add(days=7).format("YYYY-MM-DD")

        request = MeetingRequest.from_defaults(
            config.defaults,
            start_date=start_date,
            end_date=end,
            start_time=start_time,
            end_time=end_time,
            duration=duration,
            duration_unit=duration_unit,
            day_filter=days,
        )
        planner = MeetingPlanner(
            request.to_parameters(),
            calendar=_calendar_source(config, events, google),
            timezone=tz,
        )

        if events or google:
            candidates = planner.free_slots()
        else:
            candidates = list(planner.time_slots())

    except (TimesyncError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if keys_only:
        for slot in candidates:
            console.print(slot.key, highlight=False)
        return

    if not candidates:
        console.print("[yellow]⚠ No slots fit this range and window.[/yellow]")
        return

    table = _slot_table(f"{len(candidates)} candidate slot(s) - {request.describe()}")
    for slot in candidates:
        table.add_row(
            slot.date.isoformat(),
            slot.date.strftime("%A"),
            f"{format_time(slot.start_time)} – {format_time(slot.end_time)}",
            slot.key,
        )

    console.print()
    console.print(table)
    console.print()


@app.command()
def rank(
    payload_file: Annotated[Path, typer.Argument(help="YAML or JSON file with a meeting and its submissions")],
    top: Annotated[Optional[int], typer.Option("--top", "-n", help="Only show the best N slots with responses.")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print JSON instead of a table.")] = False,
):
    """
    Rank the meeting's slots by how many participants can attend.
    """
    try:
        payload = AvailabilityPayload.load_from_file(payload_file)
        planner = MeetingPlanner(payload.meeting.to_parameters())
        ranked = planner.rank(payload.to_submissions())
    except (TimesyncError, ValueError, FileNotFoundError) as e:
        _fail(e)

    if top is not None:
        ranked = best_slots(ranked, limit=top)

    if as_json:
        console.print_json(data=[item.to_dict() for item in ranked])
        return

    table = Table(
        title=payload.meeting.title or "Ranked slots",
        show_header=True,
        header_style="bold cyan"
    )
    table.add_column("#", justify="right")
    table.add_column("Slot", style="bold yellow")
    table.add_column("Participants", justify="right")
    table.add_column("Who", style="dim")

    for position, item in enumerate(ranked, 1):
        who = ", ".join(
            detail.display_name or detail.identity.value for detail in item.participant_details
        )
        table.add_row(str(position), item.key, str(item.participant_count), who)

    console.print()
    console.print(table)
    console.print()


@app.command()
def summary(
    payload_file: Annotated[Path, typer.Argument(help="YAML or JSON file with a meeting and its submissions")],
):
    """
    Show per-date availability and how many participants have responded.
    """
    try:
        payload = AvailabilityPayload.load_from_file(payload_file)
        planner = MeetingPlanner(payload.meeting.to_parameters())
        invited = len(payload.meeting.participant_emails) or None
        report = planner.availability(payload.to_submissions(), invited=invited)
    except (TimesyncError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print()
    if report.invited is None:
        console.print(f"[bold]Responses:[/bold] {report.responded}")
    else:
        console.print(
            f"[bold]Responses:[/bold] {report.responded} of {report.invited} "
            f"({report.pending} pending)"
        )

    table = Table(title="Availability by date", show_header=True, header_style="bold cyan")
    table.add_column("Date", style="bold yellow")
    table.add_column("Participants", justify="right")
    for day in report.by_date:
        table.add_row(day.date.isoformat(), str(day.participant_count))

    console.print(table)

    best = best_slots(report.ranked_slots, limit=1)
    if best:
        console.print(
            f"[bold green]✓ Best slot:[/bold green] {best[0].key} "
            f"({best[0].participant_count} participant(s))"
        )
    else:
        console.print("[yellow]⚠ Nobody has declared any availability yet.[/yellow]")
    console.print()


@app.command()
def check(
    slot_keys: Annotated[List[str], typer.Argument(help="Slot keys (YYYY-MM-DDTHH:MM-HH:MM)")],
    config_file: ConfigOption = None,
    events: EventsOption = None,
    google: GoogleOption = False,
):
    """
    Check which slots are free in a calendar.

    Examples:

        timesync check 2024-01-01T09:00-10:00 2024-01-01T10:00-11:00 --events busy.json
    """
    try:
        config = AppConfig.load_or_default(config_file)
        calendar = _calendar_source(config, events, google)
        if calendar is None:
            raise ValueError("Pass --events or --google to check slots against a calendar.")

        results = check_slot_keys(calendar, slot_keys, config.timezone)
    except (TimesyncError, ValueError, FileNotFoundError) as e:
        _fail(e)

    console.print()
    for slot, conflicts in results:
        if not conflicts:
            console.print(f"  [green]✓ free[/green]      {slot.key}")
        else:
            blocking = "; ".join(str(interval) for interval in conflicts)
            console.print(f"  [red]✗ conflict[/red]  {slot.key}  [dim]({blocking})[/dim]")
    console.print()


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]timesync[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
