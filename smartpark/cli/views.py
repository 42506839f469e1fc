"""
Rich renderables for the terminal presentation.

Pure functions from domain objects to Rich tables and panels; nothing in
here touches the service or the stored state.
"""

from typing import Iterable, Optional, Set

import pendulum
from pendulum import DateTime
from rich.console import Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..domain.models import CURRENCY_SYMBOL, Booking, LocationConfig, PriceQuote, Slot, ZoneType
from ..services.parking_service import ZoneStats

ZONE_ICONS = {
    ZoneType.CAR: "🚗",
    ZoneType.BIKE: "🏍️",
    ZoneType.BICYCLE: "🚲",
}


def format_clock(now: DateTime) -> str:
    """Format the dashboard clock, e.g. ``Monday, October 19, 2026 02:05 PM``."""
    return now.format("dddd, MMMM D, YYYY hh:mm A")


def format_money(amount: int) -> str:
    return f"{CURRENCY_SYMBOL}{amount}"


def stats_table(stats: Iterable[ZoneStats]) -> Table:
    table = Table(title="Availability", show_header=True, header_style="bold cyan")
    table.add_column("Zone", style="bold")
    table.add_column("Available", justify="right", style="green")
    table.add_column("Occupied", justify="right", style="red")
    table.add_column("Total", justify="right")

    for entry in stats:
        table.add_row(
            f"{ZONE_ICONS[entry.zone]} {entry.zone.display_name}",
            str(entry.available),
            str(entry.occupied),
            str(entry.total),
        )
    return table


def location_panel(location: LocationConfig) -> Panel:
    surveillance = "[green]Active[/green]" if location.surveillance else "[dim]Inactive[/dim]"
    return Panel.fit(
        f"[bold]{location.pricing.label}[/bold] - All Vehicle Types\n"
        f"Surveillance: {surveillance} ({location.description})",
        title=f"🅿️  {location.name}",
    )


def slot_grid(
    zone: ZoneType,
    slots: Iterable[Slot],
    *,
    selected_id: Optional[str] = None,
    own_slot_ids: Optional[Set[str]] = None,
    columns: int = 10,
) -> Panel:
    """
    Lay out a zone's slots as a grid.

    Colours: green free, red occupied, yellow booked, blue booked by you.
    """
    own_slot_ids = own_slot_ids or set()
    grid = Table.grid(padding=(0, 1))
    for _ in range(columns):
        grid.add_column(justify="right")

    row = []
    for slot in slots:
        if slot.id in own_slot_ids:
            style = "bold blue"
        elif slot.occupied:
            style = "red"
        elif slot.reserved:
            style = "yellow"
        else:
            style = "green"
        if slot.id == selected_id:
            style += " reverse"

        row.append(Text(f"{slot.number:>3}", style=style))
        if len(row) == columns:
            grid.add_row(*row)
            row = []
    if row:
        grid.add_row(*row)

    return Panel.fit(grid, title=f"{ZONE_ICONS[zone]} {zone.display_name}")


def bookings_table(bookings: Iterable[Booking], title: str) -> Table:
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Booking", style="bold yellow")
    table.add_column("Slot")
    table.add_column("Vehicle")
    table.add_column("Time")
    table.add_column("Hours", justify="right")
    table.add_column("Cost", justify="right")
    table.add_column("Status")

    for booking in bookings:
        status_style = "green" if booking.is_active else "dim"
        table.add_row(
            booking.id,
            booking.slot_id,
            booking.vehicle_number,
            f"{booking.from_time} - {booking.to_time}",
            str(booking.duration),
            format_money(booking.cost),
            f"[{status_style}]{booking.status.value}[/{status_style}]",
        )
    return table


def booking_receipt(booking: Booking, location: LocationConfig) -> Panel:
    lines = [
        f"[bold]Booking ID:[/bold] {booking.id}",
        f"[bold]Slot:[/bold] {booking.slot_id}",
        f"[bold]Zone:[/bold] {booking.zone.value.capitalize()} Parking",
        f"[bold]Vehicle:[/bold] {booking.vehicle_number}",
        f"[bold]Time:[/bold] {booking.from_time} - {booking.to_time} ({booking.duration} hours)",
        f"[bold]Pricing:[/bold] {booking.pricing_model or location.pricing.label}",
        f"[bold]Total Amount:[/bold] {format_money(booking.cost)}",
    ]
    if location.surveillance:
        lines.append("[green]📹 Under Surveillance[/green]")
    return Panel.fit("\n".join(lines), title="✓ Booking confirmed")


def activity_panel(bookings: Iterable[Booking]) -> Panel:
    """Latest bookings, newest first, as shown on the dashboard."""
    lines = []
    for booking in bookings:
        try:
            booked_at = pendulum.parse(booking.booking_time).format("hh:mm A")
        except ValueError:
            booked_at = booking.booking_time
        lines.append(
            f"🎫 [bold]Slot {booking.slot_id} Booked[/bold]  "
            f"{booking.vehicle_number} • {booking.zone.value}  [dim]{booked_at}[/dim]"
        )
    body = "\n".join(lines) if lines else "[dim]No recent activity[/dim]"
    return Panel.fit(body, title="Recent activity")


def quote_text(quote: PriceQuote) -> str:
    return f"Estimated cost: [bold]{quote.format_display()}[/bold]"


def dashboard(
    now: DateTime,
    location: LocationConfig,
    stats: Iterable[ZoneStats],
    recent: Iterable[Booking] = (),
) -> Group:
    """Clock, location, availability and recent activity, refreshed by ``smartpark watch``."""
    return Group(
        Text(format_clock(now), style="bold cyan"),
        location_panel(location),
        stats_table(stats),
        activity_panel(recent),
    )
