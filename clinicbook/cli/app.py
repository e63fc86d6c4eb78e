"""
Main CLI application using Typer.
"""

import logging
from pathlib import Path
from typing import Annotated, Optional

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from ..config import AppConfig, load_config
from ..domain.calendar_grid import to_local
from ..domain.exceptions import ClinicBookError, ValidationError
from ..domain.models import AppointmentDraft, Service, SlotStatus
from ..domain.query import DateRange, QueryFilters, StatusBucket
from ..services.scheduling import SchedulingService, parse_day

app = typer.Typer(
    name="clinicbook",
    help="Book clinic appointments and inspect daily slot availability",
    add_completion=False
)

console = Console()
err_console = Console(stderr=True)

DEFAULT_DATA_FILE = Path("appointments.json")

ConfigOption = Annotated[Optional[Path], typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")]
DataOption = Annotated[Optional[Path], typer.Option("--data", help="Appointments JSON file. Overrides storage_path from the config.")]
TzOption = Annotated[Optional[int], typer.Option("--tz-offset", help="Minutes to add to local time to reach UTC (UTC+3 is -180).")]

_STATUS_STYLES = {
    SlotStatus.AVAILABLE: "green",
    SlotStatus.BUSY: "red",
    SlotStatus.UNAVAILABLE: "dim",
}


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load(config_file: Optional[Path], data_file: Optional[Path]) -> tuple[AppConfig, SchedulingService]:
    """Load configuration and build the scheduling service backed by a JSON file."""
    try:
        config = load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    _configure_logging(config.log_level)

    storage_path = data_file or config.storage_path or DEFAULT_DATA_FILE
    config = config.model_copy(update={"storage_path": storage_path})

    try:
        return config, SchedulingService.from_config(config)
    except ClinicBookError as e:
        _fail(e)


def _fail(error: ClinicBookError) -> None:
    err_console.print(f"[bold red]Error:[/bold red] {error}")
    if isinstance(error, ValidationError):
        for field_name, reason in error.fields.items():
            err_console.print(f"  [yellow]{field_name}[/yellow]: {reason}")
    raise typer.Exit(1)


def _service_option(value: Optional[str]) -> Optional[Service]:
    if value is None or value == "all":
        return None
    try:
        return Service(value)
    except ValueError:
        known = ", ".join(s.value for s in Service)
        err_console.print(f"[bold red]Error:[/bold red] Unknown service '{value}'. Use one of: {known}")
        raise typer.Exit(1)


def _format_local(instant: pendulum.DateTime, tz_offset: int) -> str:
    return to_local(instant, tz_offset).format("DD.MM.YYYY HH:mm")


@app.command()
def appointments(
    search: Annotated[str, typer.Option("--search", "-s", help="Match patient name or phone number")] = "",
    status: Annotated[StatusBucket, typer.Option("--status", help="Status bucket")] = StatusBucket.ALL,
    service: Annotated[Optional[str], typer.Option("--service", help="Service key")] = None,
    date_range: Annotated[DateRange, typer.Option("--range", help="Only appointments from the last week or month")] = DateRange.ALL,
    tz_offset: TzOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    List appointments, most recent first.

    Examples:

        clinicbook appointments --status today
        clinicbook appointments --search "+7 999" --range week
    """
    config, scheduling = _load(config_file, data_file)
    offset = config.tz_offset_minutes if tz_offset is None else tz_offset

    now = pendulum.now("UTC")
    filters = QueryFilters(
        search=search,
        status=status,
        service=_service_option(service),
        date_range=date_range,
        tz_offset=offset,
    )
    results = scheduling.list_appointments(filters, now=now)
    stats = scheduling.stats(now=now, tz_offset=offset)

    console.print(
        f"\n[bold cyan]Total:[/bold cyan] {stats.total}   "
        f"[bold]Upcoming:[/bold] {stats.upcoming}   "
        f"[bold]Today:[/bold] {stats.today}   "
        f"[bold]Past:[/bold] {stats.past}\n"
    )

    if not results:
        console.print("[yellow]No appointments match the given filters.[/yellow]\n")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Patient", style="bold yellow")
    table.add_column("Phone")
    table.add_column("Service")
    table.add_column("Start")
    table.add_column("End")

    for appointment in results:
        table.add_row(
            appointment.id,
            appointment.name,
            appointment.phone_number,
            appointment.service.label,
            _format_local(appointment.start, offset),
            _format_local(appointment.end, offset),
        )

    console.print(table)
    console.print()


@app.command()
def availability(
    date: Annotated[str, typer.Argument(help="Day to inspect (YYYY-MM-DD)")],
    service: Annotated[Optional[str], typer.Option("--service", help="Only offer starts where this service fits")] = None,
    tz_offset: TzOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Show the slot grid of a day with each slot's status.
    """
    config, scheduling = _load(config_file, data_file)
    offset = config.tz_offset_minutes if tz_offset is None else tz_offset

    try:
        day = parse_day(date)
    except ValueError as e:
        err_console.print(f"[bold red]Error parsing date:[/bold red] {e}")
        raise typer.Exit(1)

    slots = scheduling.slots(day, tz_offset=offset, service=_service_option(service))
    if not slots:
        console.print("[yellow]No slots configured for this day.[/yellow]")
        return

    table = Table(title=f"Slots on {day.isoformat()}", show_header=True, header_style="bold cyan")
    table.add_column("Time")
    table.add_column("Status")
    table.add_column("Patient")

    for slot in slots:
        style = _STATUS_STYLES[slot.status]
        patient = ""
        if slot.appointment is not None:
            patient = f"{slot.appointment.name} ({slot.appointment.service.label})"
        table.add_row(slot.label, f"[{style}]{slot.status.value}[/{style}]", patient)

    console.print()
    console.print(table)
    free = sum(1 for slot in slots if slot.is_bookable)
    console.print(f"\n[bold green]{free}[/bold green] of {len(slots)} slots available\n")


@app.command()
def book(
    name: Annotated[str, typer.Argument(help="Patient name")],
    phone: Annotated[str, typer.Argument(help="Phone number")],
    service: Annotated[str, typer.Argument(help="consultation, treatment, extraction or prosthetics")],
    start: Annotated[str, typer.Argument(help="Start, e.g. 2024-01-01T10:00 (local) or 2024-01-01T07:00Z")],
    tz_offset: TzOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Book a new appointment.
    """
    config, scheduling = _load(config_file, data_file)
    offset = config.tz_offset_minutes if tz_offset is None else tz_offset

    try:
        appointment = scheduling.book(AppointmentDraft(
            name=name,
            phone_number=phone,
            service=service,
            start=start,
            tz_offset=offset,
        ))
    except ClinicBookError as e:
        _fail(e)

    console.print(Panel.fit(
        f"[bold green]Appointment booked[/bold green]\n\n"
        f"[bold]ID:[/bold] {appointment.id}\n"
        f"[bold]Patient:[/bold] {appointment.name} ({appointment.phone_number})\n"
        f"[bold]Service:[/bold] {appointment.service.label}\n"
        f"[bold]Time:[/bold] {_format_local(appointment.start, offset)} - "
        f"{to_local(appointment.end, offset).format('HH:mm')}",
    ))


@app.command()
def reschedule(
    appointment_id: Annotated[str, typer.Argument(help="Appointment ID")],
    name: Annotated[Optional[str], typer.Option("--name")] = None,
    phone: Annotated[Optional[str], typer.Option("--phone")] = None,
    service: Annotated[Optional[str], typer.Option("--service")] = None,
    start: Annotated[Optional[str], typer.Option("--start")] = None,
    tz_offset: TzOption = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Change fields of an existing appointment.
    """
    config, scheduling = _load(config_file, data_file)
    offset = config.tz_offset_minutes if tz_offset is None else tz_offset

    try:
        appointment = scheduling.reschedule(appointment_id, AppointmentDraft(
            name=name,
            phone_number=phone,
            service=service,
            start=start,
            tz_offset=offset,
        ))
    except ClinicBookError as e:
        _fail(e)

    console.print(
        f"[green]Updated[/green] {appointment.id}: {appointment.name}, "
        f"{appointment.service.label}, {_format_local(appointment.start, offset)}"
    )


@app.command()
def cancel(
    appointment_id: Annotated[str, typer.Argument(help="Appointment ID")],
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Delete an appointment.
    """
    _, scheduling = _load(config_file, data_file)

    try:
        scheduling.cancel(appointment_id)
    except ClinicBookError as e:
        _fail(e)

    console.print(f"[green]Appointment {appointment_id} deleted.[/green]")


@app.command()
def serve(
    host: Annotated[Optional[str], typer.Option("--host")] = None,
    port: Annotated[Optional[int], typer.Option("--port")] = None,
    config_file: ConfigOption = None,
    data_file: DataOption = None,
):
    """
    Run the HTTP API.
    """
    import uvicorn

    from ..api import create_app

    config, scheduling = _load(config_file, data_file)
    console.print(f"[bold cyan]clinicbook[/bold cyan] serving appointments from {config.storage_path}")
    uvicorn.run(
        create_app(config, scheduling=scheduling),
        host=host or config.host,
        port=port or config.port,
        log_level=config.log_level.lower(),
    )


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]clinicbook[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
