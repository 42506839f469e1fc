"""
Domain models for zones, slots, bookings and the location configuration.

Persisted records keep the camelCase keys the stored blobs have always used
(``vehicleNumber``, ``slotId``, ``bookingTime`` ...). Python code works with
the snake_case attribute names.
"""

import string
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from random import Random
from typing import Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import ValidationError


CURRENCY_SYMBOL = "₹"
SURVEILLANCE_ON = "Full 24/7 CCTV Surveillance"
SURVEILLANCE_OFF = "No Surveillance"


def parse_time_of_day(value: str) -> time:
    """
    Parse an ``HH:MM`` time of day.

    Raises:
        ValidationError: If the value is empty or not a valid time of day
    """
    try:
        hours, minutes = value.strip().split(":")
        return time(hour=int(hours), minute=int(minutes))
    except (AttributeError, ValueError) as exc:
        raise ValidationError(
            f"Invalid time of day: {value!r} (expected HH:MM)"
        ) from exc


def generate_vehicle_number(rng: Random) -> str:
    """Generate a plausible registration number for a simulated vehicle."""
    num = rng.randint(1, 99)
    letters = "".join(rng.choice(string.ascii_uppercase) for _ in range(2))
    suffix = rng.randint(1, 9999)
    return f"AP {num} {letters} {suffix}"


class ZoneType(str, Enum):
    """The fixed vehicle categories, each with its own slot pool."""

    CAR = "car"
    BIKE = "bike"
    BICYCLE = "bicycle"

    @classmethod
    def parse(cls, value: "ZoneType | str") -> "ZoneType":
        """
        Resolve a zone from user input.

        Raises:
            ValidationError: If the value is not one of the known zones
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            choices = ", ".join(zone.value for zone in cls)
            raise ValidationError(
                f"Invalid vehicle type: {value!r}. Choose one of: {choices}"
            ) from exc

    @property
    def display_name(self) -> str:
        """Human readable zone name."""
        return ZONE_TITLES[self]


ZONE_TITLES = {
    ZoneType.CAR: "Car Parking Zone A",
    ZoneType.BIKE: "Bike Parking Zone B",
    ZoneType.BICYCLE: "Bicycle Parking Zone C",
}


class Record(BaseModel):
    """Base for persisted records (camelCase on the wire)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Slot(Record):
    """An individually addressable parking space within a zone."""

    id: str
    number: int
    occupied: bool = False
    reserved: bool = False
    vehicle_number: Optional[str] = None

    @staticmethod
    def make_id(zone: ZoneType, number: int) -> str:
        """Build the slot identifier, e.g. ``CAR-007``."""
        return f"{zone.value.upper()}-{number:03d}"

    @property
    def is_available(self) -> bool:
        """A slot can be selected only when neither occupied nor reserved."""
        return not (self.occupied or self.reserved)

    def free(self) -> None:
        """Release both the physical occupancy and any reservation hold."""
        self.occupied = False
        self.reserved = False
        self.vehicle_number = None


class Zone(Record):
    """Slot pool of a single vehicle category."""

    total: int = 0
    occupied: int = 0
    slots: List[Slot] = Field(default_factory=list)

    def find_slot(self, slot_id: str) -> Slot | None:
        """Find a slot by its identifier."""
        for slot in self.slots:
            if slot.id == slot_id:
                return slot
        return None

    def available_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_available)

    def occupied_count(self) -> int:
        return sum(1 for slot in self.slots if slot.occupied)

    def next_number(self) -> int:
        """Next free sequence number, continuing after the highest one."""
        return max((slot.number for slot in self.slots), default=0) + 1

    def sync_counts(self) -> None:
        """Recompute ``total`` and ``occupied`` from the slot list."""
        self.total = len(self.slots)
        self.occupied = self.occupied_count()


class ParkingData(Record):
    """The three zones of the site."""

    car: Zone = Field(default_factory=Zone)
    bike: Zone = Field(default_factory=Zone)
    bicycle: Zone = Field(default_factory=Zone)

    def zone(self, zone_type: ZoneType) -> Zone:
        return getattr(self, zone_type.value)

    def items(self) -> Iterator[Tuple[ZoneType, Zone]]:
        for zone_type in ZoneType:
            yield zone_type, self.zone(zone_type)

    @classmethod
    def generate(
        cls,
        layout: Dict[ZoneType, Tuple[int, int]],
        rng: Random,
    ) -> "ParkingData":
        """
        Build fresh zones from a ``zone -> (total, occupied)`` layout.

        The first ``occupied`` slots of every zone start occupied with a
        generated vehicle number.
        """
        zones: Dict[str, Zone] = {}

        for zone_type in ZoneType:
            total, occupied = layout.get(zone_type, (0, 0))
            slots = []
            for number in range(1, total + 1):
                is_occupied = number <= occupied
                slots.append(
                    Slot(
                        id=Slot.make_id(zone_type, number),
                        number=number,
                        occupied=is_occupied,
                        vehicle_number=generate_vehicle_number(rng) if is_occupied else None,
                    )
                )
            zones[zone_type.value] = Zone(total=total, occupied=occupied, slots=slots)

        return cls(**zones)


class BookingStatus(str, Enum):
    """Lifecycle status of a booking (``active`` -> ``cancelled`` only)."""

    ACTIVE = "active"
    CANCELLED = "cancelled"


class Booking(Record):
    """A user's claim on a slot for a time-of-day interval."""

    id: str
    user_id: str
    user_name: str
    slot_id: str
    zone: ZoneType
    vehicle_number: str
    from_time: str
    to_time: str
    duration: int
    cost: int
    pricing_model: str = ""
    status: BookingStatus = BookingStatus.ACTIVE
    booking_time: str

    @field_validator("from_time", "to_time")
    @classmethod
    def validate_time_of_day(cls, value: str) -> str:
        """Stored times must be valid ``HH:MM`` values."""
        try:
            parse_time_of_day(value)
        except ValidationError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE


class Pricing(Record):
    """Flat base price for a base duration, with a derived display label."""

    amount: int = Field(default=20, gt=0)
    duration: int = Field(default=7, gt=0)
    label: str = ""

    @staticmethod
    def make_label(amount: int, duration: int) -> str:
        return f"{CURRENCY_SYMBOL}{amount} for {duration} Hours"

    @classmethod
    def build(cls, amount: int = 20, duration: int = 7) -> "Pricing":
        return cls(amount=amount, duration=duration, label=cls.make_label(amount, duration))


class LocationConfig(Record):
    """Site name, pricing and surveillance settings (a singleton)."""

    name: str = "College Campus Parking"
    pricing: Pricing = Field(default_factory=Pricing.build)
    surveillance: bool = True
    description: str = SURVEILLANCE_ON

    @classmethod
    def build(
        cls,
        name: str,
        amount: int,
        duration: int,
        surveillance: bool,
    ) -> "LocationConfig":
        """Create a configuration with the derived label and description."""
        return cls(
            name=name,
            pricing=Pricing.build(amount=amount, duration=duration),
            surveillance=surveillance,
            description=SURVEILLANCE_ON if surveillance else SURVEILLANCE_OFF,
        )


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"


class User(BaseModel):
    """Logged-in user. Lives only for the session and is never persisted."""

    name: str
    role: UserRole = UserRole.USER
    id: str

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class PriceQuote:
    """
    Result of a pricing calculation.

    ``duration_hours`` is rounded up to whole hours.
    """
    duration_hours: int
    cost: int
    label: str = ""

    def format_display(self) -> str:
        return f"{self.duration_hours} hours | {CURRENCY_SYMBOL}{self.cost}"


@dataclass(frozen=True)
class SlotSelection:
    """Slot picked by the user but not yet booked."""
    zone: ZoneType
    slot_id: str


@dataclass
class AppState:
    """
    Complete application state.

    Owned by a single ``ParkingService``; only ``bookings``, ``parking`` and
    ``location`` are persisted, the rest is session state.
    """
    parking: ParkingData
    location: LocationConfig
    bookings: List[Booking] = field(default_factory=list)
    current_user: Optional[User] = None
    current_zone: ZoneType = ZoneType.CAR
    selection: Optional[SlotSelection] = None
    from_time: Optional[str] = None
    to_time: Optional[str] = None
    preview: Optional[PriceQuote] = None

    def find_booking(self, booking_id: str) -> Booking | None:
        for booking in self.bookings:
            if booking.id == booking_id:
                return booking
        return None

    def active_booking_for_slot(self, slot_id: str) -> Booking | None:
        for booking in self.bookings:
            if booking.slot_id == slot_id and booking.is_active:
                return booking
        return None
