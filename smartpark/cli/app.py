"""
Main CLI application using Typer.
"""

import json
import logging
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Any, Iterator, Optional

import pendulum
import typer
from rich.console import Console
from rich.live import Live
from rich.logging import RichHandler
from rich.table import Table

from ..adapters.repository import ParkingRepository
from ..adapters.storage import InMemoryStorage, JsonFileStorage
from ..config import AppConfig, load_config
from ..domain.exceptions import SmartParkError
from ..domain.models import Booking, LocationConfig, PriceQuote, Pricing, Slot, User, ZoneType
from ..domain.pricing import PricingCalculator
from ..services.commands import CommandDispatcher
from ..services.parking_service import ParkingService
from . import views

app = typer.Typer(
    name="smartpark",
    help="Book and manage parking slots at a single site",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml"),
]
YesOption = Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")]


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_service(config: AppConfig, ephemeral: bool = False) -> ParkingService:
    """Wire storage, repository and calculator from the configuration."""
    storage = InMemoryStorage() if ephemeral else JsonFileStorage(config.storage_dir)
    return ParkingService(
        ParkingRepository(storage),
        layout=config.zone_layout(),
        default_location=config.location.to_location_config(),
        calculator=PricingCalculator(extra_hour_rate=config.extra_hour_rate),
        reset_occupancy_ratio=config.reset_occupancy_ratio,
        clock=lambda: pendulum.now(config.timezone),
    )


def _open(config_file: Optional[Path], ephemeral: bool = False) -> tuple[AppConfig, ParkingService]:
    config = load_config(config_file)
    _setup_logging(config.log_level)
    return config, _build_service(config, ephemeral=ephemeral)


@contextmanager
def _cli_errors() -> Iterator[None]:
    """Print expected failures and exit with code 1."""
    try:
        yield
    except (SmartParkError, FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


def _report_persistence(service: ParkingService) -> None:
    if service.persistence_warning is not None:
        console.print(f"[yellow]⚠ {service.persistence_warning}[/yellow]")


def _confirm(question: str, yes: bool) -> None:
    if not yes and not typer.confirm(question, default=False):
        console.print("[dim]Aborted.[/dim]")
        raise typer.Exit(0)


@app.command()
def stats(config_file: ConfigOption = None):
    """
    Show the location and the availability of every zone.
    """
    with _cli_errors():
        _, service = _open(config_file)
        console.print()
        console.print(views.location_panel(service.state.location))
        console.print(views.stats_table(service.zone_stats()))
        console.print(views.activity_panel(service.recent_activity()))
        console.print()


@app.command()
def slots(
    zone: Annotated[str, typer.Argument(help="car, bike or bicycle")],
    config_file: ConfigOption = None,
):
    """
    Show the slot grid of a zone.
    """
    with _cli_errors():
        _, service = _open(config_file)
        zone_type = service.select_zone(zone)
        console.print(views.slot_grid(zone_type, service.slots(zone_type)))
        console.print("[green]free[/green]  [red]occupied[/red]  [yellow]booked[/yellow]")


@app.command()
def quote(
    from_time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    to_time: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    config_file: ConfigOption = None,
):
    """
    Preview the cost of parking between two times of day.
    """
    with _cli_errors():
        _, service = _open(config_file)
        price = service.preview_cost(from_time, to_time)
        console.print(views.quote_text(price))


@app.command()
def book(
    zone: Annotated[str, typer.Argument(help="car, bike or bicycle")],
    slot: Annotated[str, typer.Argument(help="Slot id (CAR-041) or number (41)")],
    vehicle: Annotated[str, typer.Argument(help="Vehicle registration number")],
    from_time: Annotated[str, typer.Argument(help="Start time (HH:MM)")],
    to_time: Annotated[str, typer.Argument(help="End time (HH:MM)")],
    user: Annotated[str, typer.Option("--user", "-u", help="Your name")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, help="Your password")],
    config_file: ConfigOption = None,
):
    """
    Book a free slot.

    Examples:

        smartpark book car 41 "AP 09 XY 1234" 10:00 12:00 --user alice
    """
    with _cli_errors():
        _, service = _open(config_file)
        service.login(user, password)
        booking = service.create_booking(vehicle, from_time, to_time, zone=zone, slot_id=slot)

        console.print()
        console.print(views.booking_receipt(booking, service.state.location))
        _report_persistence(service)


@app.command()
def bookings(
    user: Annotated[Optional[str], typer.Option("--user", "-u", help="Only bookings of this user")] = None,
    config_file: ConfigOption = None,
):
    """
    List active bookings.
    """
    with _cli_errors():
        _, service = _open(config_file)
        active = service.active_bookings(user_name=user)
        if not active:
            console.print("[yellow]No active bookings.[/yellow]")
            return
        console.print(views.bookings_table(active, "Active bookings"))


@app.command()
def history(
    user: Annotated[Optional[str], typer.Option("--user", "-u", help="Only bookings of this user")] = None,
    config_file: ConfigOption = None,
):
    """
    List cancelled bookings.
    """
    with _cli_errors():
        _, service = _open(config_file)
        past = service.history(user_name=user)
        if not past:
            console.print("[yellow]No parking history.[/yellow]")
            return
        console.print(views.bookings_table(past, "Parking history"))


@app.command()
def cancel(
    booking_id: Annotated[str, typer.Argument(help="Booking id, e.g. BK1700000000000")],
    yes: YesOption = False,
    config_file: ConfigOption = None,
):
    """
    Cancel a booking and free its slot.
    """
    with _cli_errors():
        _, service = _open(config_file)
        _confirm("Are you sure you want to cancel this booking?", yes)
        booking = service.cancel_booking(booking_id)
        console.print(f"[green]✓ Booking {booking.id} cancelled, slot {booking.slot_id} is free.[/green]")
        _report_persistence(service)


@app.command()
def reset(yes: YesOption = False, config_file: ConfigOption = None):
    """
    Re-draw occupancy of all slots and clear all bookings (admin).
    """
    with _cli_errors():
        _, service = _open(config_file)
        _confirm("Reset all parking slots? This will clear all bookings.", yes)
        discarded = service.reset_all_zones()
        console.print(f"[green]✓ All slots have been reset ({discarded} booking(s) cleared).[/green]")
        _report_persistence(service)


@app.command()
def add_slots(
    zone: Annotated[str, typer.Argument(help="car, bike or bicycle")],
    count: Annotated[int, typer.Argument(help="Number of slots to add")],
    config_file: ConfigOption = None,
):
    """
    Add free slots to a zone (admin).
    """
    with _cli_errors():
        _, service = _open(config_file)
        added = service.add_slots(zone, count)
        console.print(
            f"[green]✓ {len(added)} slots added to {ZoneType.parse(zone).value} zone "
            f"({added[0].id} - {added[-1].id}).[/green]"
        )
        _report_persistence(service)


@app.command()
def configure(
    name: Annotated[str, typer.Option("--name", help="Location name")],
    price: Annotated[int, typer.Option("--price", help="Base price for the base duration")],
    surveillance: Annotated[bool, typer.Option("--surveillance/--no-surveillance")] = True,
    config_file: ConfigOption = None,
):
    """
    Save the location configuration (admin).
    """
    with _cli_errors():
        _, service = _open(config_file)
        location = service.update_location_config(name, price, surveillance)
        console.print("[green]✓ Location configuration saved.[/green]")
        console.print(views.location_panel(location))
        _report_persistence(service)


@app.command()
def pricing(
    amount: Annotated[int, typer.Argument(help="New base price")],
    config_file: ConfigOption = None,
):
    """
    Change the base price (admin).
    """
    with _cli_errors():
        _, service = _open(config_file)
        updated = service.configure_pricing(amount)
        console.print(f"[green]✓ Pricing updated to {updated.label}[/green]")
        _report_persistence(service)


@app.command()
def export(
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Target file")] = None,
    config_file: ConfigOption = None,
):
    """
    Export parking data and bookings as JSON (admin).
    """
    with _cli_errors():
        config, service = _open(config_file)
        data = service.export_data()
        target = output or Path(f"smartpark-data-{pendulum.now(config.timezone).to_date_string()}.json")

        try:
            with open(target, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except OSError as e:
            console.print(f"[bold red]Error:[/bold red] Could not write {target}: {e}")
            raise typer.Exit(1)

        console.print(f"[green]✓ Data exported to {target}[/green]")


@app.command()
def wipe(yes: YesOption = False, config_file: ConfigOption = None):
    """
    Delete the stored state and start from the configured defaults (admin).
    """
    with _cli_errors():
        _, service = _open(config_file)
        _confirm("Delete all stored parking data and bookings?", yes)
        service.factory_reset()
        console.print("[green]✓ Stored data removed.[/green]")


@app.command()
def watch(
    interval: Annotated[float, typer.Option("--interval", help="Refresh interval in seconds")] = 1.0,
    iterations: Annotated[Optional[int], typer.Option("--iterations", help="Stop after N refreshes")] = None,
    config_file: ConfigOption = None,
):
    """
    Live dashboard: clock and availability, refreshed every second.
    """
    with _cli_errors():
        config, service = _open(config_file)

        def render():
            return views.dashboard(
                pendulum.now(config.timezone),
                service.state.location,
                service.zone_stats(),
                service.recent_activity(),
            )

        count = 0
        try:
            with Live(render(), console=console, auto_refresh=False) as live:
                while iterations is None or count < iterations:
                    live.update(render(), refresh=True)
                    count += 1
                    if iterations is None or count < iterations:
                        time.sleep(interval)
        except KeyboardInterrupt:
            console.print()


def _render_result(name: str, result: Any, service: ParkingService) -> None:
    """Render the outcome of a shell command."""
    location: LocationConfig = service.state.location
    selection = service.state.selection
    selected_id = selection.slot_id if selection is not None else None

    if isinstance(result, User):
        console.print(f"[green]✓ Welcome {result.name} ({result.role.value})[/green]")
    elif isinstance(result, ZoneType):
        own = {b.slot_id for b in service.my_bookings()}
        console.print(views.slot_grid(result, service.slots(result), selected_id=selected_id, own_slot_ids=own))
    elif isinstance(result, Slot):
        own = {b.slot_id for b in service.my_bookings()}
        zone = service.state.current_zone
        console.print(views.slot_grid(zone, service.slots(zone), selected_id=selected_id, own_slot_ids=own))
        console.print(f"[green]✓ Selected {result.id}[/green]")
        if service.state.preview is not None:
            console.print(views.quote_text(service.state.preview))
    elif isinstance(result, PriceQuote):
        console.print(views.quote_text(result))
    elif isinstance(result, Booking):
        if result.is_active:
            console.print(views.booking_receipt(result, location))
        else:
            console.print(f"[green]✓ Booking {result.id} cancelled[/green]")
    elif isinstance(result, LocationConfig):
        console.print(views.location_panel(result))
    elif isinstance(result, Pricing):
        console.print(f"[green]✓ Pricing updated to {result.label}[/green]")
    elif name == "stats":
        console.print(views.stats_table(result))
        console.print(views.activity_panel(service.recent_activity()))
    elif name in ("bookings", "history"):
        if result:
            console.print(views.bookings_table(result, name.capitalize()))
        else:
            console.print("[yellow]Nothing to show.[/yellow]")
    elif name == "add-slots":
        console.print(f"[green]✓ {len(result)} slots added[/green]")
    elif name == "reset":
        console.print(f"[green]✓ All slots have been reset ({result} booking(s) cleared)[/green]")
    elif name == "export":
        console.print_json(data=result)
    else:
        console.print("[green]✓ Done[/green]")


def _print_help(dispatcher: CommandDispatcher) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Command", style="bold yellow")
    table.add_column("Description")
    for spec in dispatcher.commands:
        table.add_row(spec.usage, spec.help)
    table.add_row("help", "Show this list")
    table.add_row("quit", "Leave the shell")
    console.print(table)


@app.command()
def shell(
    user: Annotated[str, typer.Option("--user", "-u", prompt=True, help="Your name")],
    password: Annotated[str, typer.Option(prompt=True, hide_input=True, help="Your password")],
    role: Annotated[str, typer.Option("--role", help="admin or user")] = "user",
    ephemeral: Annotated[bool, typer.Option("--ephemeral", help="Keep all changes in memory only")] = False,
    config_file: ConfigOption = None,
):
    """
    Interactive session: log in once, then run commands like 'select car 41'.
    """
    with _cli_errors():
        config, service = _open(config_file, ephemeral=ephemeral)
        dispatcher = CommandDispatcher(service)
        logged_in = service.login(user, password, role.lower())

    console.print("\n" + "=" * 60)
    console.print(f"[bold cyan]🅿️  SmartPark - {service.state.location.name}[/bold cyan]")
    console.print(views.format_clock(pendulum.now(config.timezone)))
    console.print("=" * 60 + "\n")
    console.print(f"Logged in as [bold]{logged_in.name}[/bold]. Type [bold]help[/bold] for commands.\n")

    while True:
        try:
            line = console.input("[bold cyan]smartpark>[/bold cyan] ").strip()
        except (EOFError, KeyboardInterrupt):
            console.print()
            break

        if not line:
            continue
        if line in ("quit", "exit"):
            break
        if line == "help":
            _print_help(dispatcher)
            continue

        try:
            name, result = dispatcher.dispatch_line(line)
        except SmartParkError as e:
            console.print(f"[bold red]Error:[/bold red] {e}")
            continue

        _render_result(name, result, service)
        if dispatcher.persists(name):
            _report_persistence(service)
        if name == "logout":
            break


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]smartpark[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
