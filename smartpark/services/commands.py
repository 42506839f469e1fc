"""
Explicit command dispatch for user-facing actions.

Each action name maps to exactly one ``ParkingService`` call. Arguments
arrive as string tokens (from the interactive shell) and are converted to
typed values here, so the service never sees raw user input.
"""

import shlex
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Sequence, Tuple

from ..domain.exceptions import ValidationError
from .parking_service import ParkingService

_TRUE_WORDS = {"1", "true", "yes", "on", "y"}
_FALSE_WORDS = {"0", "false", "no", "off", "n"}


def parse_int(value: str, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field_name} must be a whole number, got {value!r}") from exc


def parse_bool(value: str, field_name: str) -> bool:
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValidationError(f"{field_name} must be yes or no, got {value!r}")


@dataclass(frozen=True)
class CommandSpec:
    """Name, arity and usage of a dispatchable command."""
    name: str
    handler: Callable[..., Any]
    usage: str
    help: str
    min_args: int = 0
    max_args: int = 0
    persists: bool = False


class CommandDispatcher:
    """
    Maps action names to service operations.

    Example:
        dispatcher.dispatch_line("select car CAR-041")
        dispatcher.dispatch("book", ["AP 09 XY 1234", "10:00", "12:00"])
    """

    def __init__(self, service: ParkingService) -> None:
        self.service = service
        self._commands: Dict[str, CommandSpec] = {}

        self._register("login", self._login, "login NAME PASSWORD [admin|user]", "Start a session", 2, 3)
        self._register("logout", service.logout, "logout", "End the session")
        self._register("zone", service.select_zone, "zone ZONE", "Switch the current zone", 1, 1)
        self._register("select", service.select_slot, "select ZONE SLOT", "Select a free slot", 2, 2)
        self._register("quote", service.preview_cost, "quote FROM TO", "Preview the cost of an interval", 2, 2)
        self._register("book", self._book, "book VEHICLE FROM TO", "Book the selected slot", 3, 3, persists=True)
        self._register("cancel", service.cancel_booking, "cancel BOOKING_ID", "Cancel a booking", 1, 1, persists=True)
        self._register("bookings", service.my_bookings, "bookings", "Your active bookings")
        self._register("history", self._history, "history", "Your past bookings")
        self._register("stats", service.zone_stats, "stats", "Availability per zone")
        self._register("reset", service.reset_all_zones, "reset", "Re-draw occupancy and drop all bookings", persists=True)
        self._register("add-slots", self._add_slots, "add-slots ZONE COUNT", "Add free slots to a zone", 2, 2, persists=True)
        self._register(
            "configure",
            self._configure,
            "configure NAME PRICE SURVEILLANCE",
            "Set location name, price and surveillance",
            3,
            3,
            persists=True,
        )
        self._register("pricing", self._pricing, "pricing AMOUNT", "Change the base price", 1, 1, persists=True)
        self._register("export", service.export_data, "export", "Snapshot parking data and bookings")

    @property
    def commands(self) -> List[CommandSpec]:
        return list(self._commands.values())

    def dispatch(self, name: str, args: Sequence[str] = ()) -> Any:
        """
        Run a command by name.

        Raises:
            ValidationError: If the command is unknown or the arity is wrong
        """
        spec = self._commands.get(name.strip().lower())
        if spec is None:
            raise ValidationError(f"Unknown command: {name}")
        if not spec.min_args <= len(args) <= spec.max_args:
            raise ValidationError(f"Usage: {spec.usage}")
        return spec.handler(*args)

    def persists(self, name: str) -> bool:
        """Whether a successful run of ``name`` writes to storage."""
        spec = self._commands.get(name.strip().lower())
        return spec is not None and spec.persists

    def dispatch_line(self, line: str) -> Tuple[str, Any]:
        """Split a shell line into command and arguments and run it."""
        try:
            tokens = shlex.split(line)
        except ValueError as exc:
            raise ValidationError(f"Could not parse input: {exc}") from exc
        if not tokens:
            raise ValidationError("Empty command")

        name = tokens[0].lower()
        return name, self.dispatch(name, tokens[1:])

    def _register(
        self,
        name: str,
        handler: Callable[..., Any],
        usage: str,
        help_text: str,
        min_args: int = 0,
        max_args: int = 0,
        persists: bool = False,
    ) -> None:
        self._commands[name] = CommandSpec(
            name=name,
            handler=handler,
            usage=usage,
            help=help_text,
            min_args=min_args,
            max_args=max_args,
            persists=persists,
        )

    def _login(self, name: str, password: str, role: str = "user"):
        return self.service.login(name, password, role.lower())

    def _book(self, vehicle_number: str, from_time: str, to_time: str):
        return self.service.create_booking(vehicle_number, from_time, to_time)

    def _history(self):
        user = self.service.state.current_user
        if user is None:
            return []
        return self.service.history(user_id=user.id)

    def _add_slots(self, zone: str, count: str):
        return self.service.add_slots(zone, parse_int(count, "COUNT"))

    def _configure(self, name: str, price: str, surveillance: str):
        return self.service.update_location_config(
            name,
            parse_int(price, "PRICE"),
            parse_bool(surveillance, "SURVEILLANCE"),
        )

    def _pricing(self, amount: str):
        return self.service.configure_pricing(parse_int(amount, "AMOUNT"))
