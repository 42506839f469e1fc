"""
Application service owning the parking state and its lifecycle operations.

Every operation checks all of its preconditions before touching the state,
so a failed call leaves the state exactly as it was. Successful mutations
are persisted immediately through the ``ParkingRepository``; a failed write
keeps the in-memory change and is reported as a ``PersistenceWarning``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from random import Random
from typing import Any, Callable, Dict, List, Optional, Tuple

import pendulum
from pendulum import DateTime

from ..adapters.repository import ParkingRepository
from ..domain.exceptions import PersistenceWarning, PreconditionError, ValidationError
from ..domain.models import (
    AppState,
    Booking,
    BookingStatus,
    LocationConfig,
    ParkingData,
    PriceQuote,
    Pricing,
    Slot,
    SlotSelection,
    User,
    UserRole,
    ZoneType,
    generate_vehicle_number,
)
from ..domain.pricing import PricingCalculator

logger = logging.getLogger(__name__)

Clock = Callable[[], DateTime]


@dataclass(frozen=True)
class ZoneStats:
    """Availability figures of a single zone."""
    zone: ZoneType
    available: int
    occupied: int
    total: int


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class ParkingService:
    """
    Owns the ``AppState`` and exposes one method per user-facing action.

    Presentation code reads input, calls these methods with plain arguments
    and re-renders afterwards; it never mutates the state itself.
    """

    def __init__(
        self,
        repository: ParkingRepository,
        *,
        layout: Dict[ZoneType, Tuple[int, int]],
        default_location: Optional[LocationConfig] = None,
        calculator: Optional[PricingCalculator] = None,
        reset_occupancy_ratio: float = 0.3,
        clock: Optional[Clock] = None,
        rng: Optional[Random] = None,
    ) -> None:
        self._repository = repository
        self._layout = layout
        self._default_location = default_location or LocationConfig()
        self._calculator = calculator or PricingCalculator()
        self._reset_occupancy_ratio = reset_occupancy_ratio
        self._clock = clock or (lambda: pendulum.now("UTC"))
        self._rng = rng or Random()
        self._persistence_warning: Optional[PersistenceWarning] = None

        self.state = self._load_state()

    @property
    def persistence_warning(self) -> Optional[PersistenceWarning]:
        """Warning from the most recent save, or None if it succeeded."""
        return self._persistence_warning

    def login(self, name: str, password: str, role: UserRole | str = UserRole.USER) -> User:
        """
        Start a session.

        Raises:
            ValidationError: If name or password is empty or the role is unknown
        """
        if _is_blank(name) or _is_blank(password):
            raise ValidationError("Please enter username and password")
        try:
            user_role = UserRole(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown role: {role!r}") from exc

        user = User(name=name.strip(), role=user_role, id=f"user_{self._now_millis()}")
        self.state.current_user = user
        logger.info("User %s logged in as %s", user.name, user.role.value)
        return user

    def logout(self) -> None:
        """End the session and drop any pending selection."""
        self.state.current_user = None
        self.state.selection = None
        self.state.preview = None

    def select_zone(self, zone: ZoneType | str) -> ZoneType:
        zone_type = ZoneType.parse(zone)
        self.state.current_zone = zone_type
        self.state.selection = None
        return zone_type

    def select_slot(self, zone: ZoneType | str, slot_id: str) -> Slot:
        """
        Record a free slot as the pending selection.

        Raises:
            ValidationError: If the zone is unknown or no slot is given
            PreconditionError: If the slot does not exist or is not free
        """
        zone_type = ZoneType.parse(zone)
        slot = self._require_free_slot(zone_type, slot_id)

        self.state.current_zone = zone_type
        self.state.selection = SlotSelection(zone=zone_type, slot_id=slot.id)
        self._refresh_preview()
        return slot

    def preview_cost(self, from_time: str, to_time: str) -> PriceQuote:
        """Price an interval and remember it as the pending interval."""
        quote = self._calculator.quote(from_time, to_time, self.state.location.pricing)
        self.state.from_time = from_time
        self.state.to_time = to_time
        self.state.preview = quote
        return quote

    def create_booking(
        self,
        vehicle_number: str,
        from_time: str,
        to_time: str,
        *,
        zone: ZoneType | str | None = None,
        slot_id: Optional[str] = None,
    ) -> Booking:
        """
        Book the selected slot (or ``slot_id`` in ``zone``) for an interval.

        The slot is marked ``reserved``; ``occupied`` is left untouched since
        it tracks physical presence only.

        Raises:
            ValidationError: If no slot is selected, a field is empty or the
                interval is invalid
            PreconditionError: If nobody is logged in or the slot is taken
        """
        if slot_id:
            zone_type = ZoneType.parse(zone or self.state.current_zone)
            selection = SlotSelection(zone=zone_type, slot_id=self._resolve_slot_id(zone_type, slot_id))
        else:
            selection = self.state.selection

        if selection is None:
            raise ValidationError("Please select a parking slot")
        if _is_blank(vehicle_number) or _is_blank(from_time) or _is_blank(to_time):
            raise ValidationError("Please fill all fields")

        user = self.state.current_user
        if user is None:
            raise PreconditionError("Please log in before booking a slot")

        quote = self._calculator.quote(from_time, to_time, self.state.location.pricing)
        slot = self._require_free_slot(selection.zone, selection.slot_id)

        booking = Booking(
            id=self._new_booking_id(),
            user_id=user.id,
            user_name=user.name,
            slot_id=slot.id,
            zone=selection.zone,
            vehicle_number=vehicle_number.strip(),
            from_time=from_time,
            to_time=to_time,
            duration=quote.duration_hours,
            cost=quote.cost,
            pricing_model=self.state.location.pricing.label,
            status=BookingStatus.ACTIVE,
            booking_time=self._clock().in_timezone("UTC").to_iso8601_string(),
        )

        slot.reserved = True
        self.state.bookings.append(booking)
        self.state.selection = None
        self._persist()

        logger.info(
            "Booked %s for %s (%s-%s, %d h, cost %d)",
            slot.id,
            booking.vehicle_number,
            from_time,
            to_time,
            booking.duration,
            booking.cost,
        )
        return booking

    def cancel_booking(self, booking_id: str) -> Booking:
        """
        Cancel an active booking and free its slot.

        Raises:
            PreconditionError: If the booking does not exist or is not active
        """
        booking = self.state.find_booking(booking_id)
        if booking is None:
            raise PreconditionError(f"Booking {booking_id} not found")
        if not booking.is_active:
            raise PreconditionError(f"Booking {booking_id} is already {booking.status.value}")

        booking.status = BookingStatus.CANCELLED

        zone = self.state.parking.zone(booking.zone)
        slot = zone.find_slot(booking.slot_id)
        if slot is not None:
            slot.free()
            zone.sync_counts()
        else:
            logger.warning("Booking %s refers to missing slot %s", booking.id, booking.slot_id)

        self._persist()
        logger.info("Cancelled booking %s for slot %s", booking.id, booking.slot_id)
        return booking

    def reset_all_zones(self) -> int:
        """
        Re-draw occupancy of every slot and discard all bookings.

        Returns:
            Number of bookings discarded
        """
        for _, zone in self.state.parking.items():
            for slot in zone.slots:
                slot.occupied = self._rng.random() < self._reset_occupancy_ratio
                slot.reserved = False
                slot.vehicle_number = generate_vehicle_number(self._rng) if slot.occupied else None
            zone.sync_counts()

        discarded = len(self.state.bookings)
        self.state.bookings.clear()
        self.state.selection = None
        self._persist()

        logger.info("Reset all zones, discarded %d booking(s)", discarded)
        return discarded

    def add_slots(self, zone: ZoneType | str, count: int) -> List[Slot]:
        """
        Append ``count`` free slots to a zone.

        Raises:
            ValidationError: If the zone is unknown or count is not positive
        """
        zone_type = ZoneType.parse(zone)
        if count is None or count <= 0:
            raise ValidationError(f"Invalid number of slots: {count}")

        pool = self.state.parking.zone(zone_type)
        start = pool.next_number()
        new_slots = [
            Slot(id=Slot.make_id(zone_type, number), number=number)
            for number in range(start, start + count)
        ]
        pool.slots.extend(new_slots)
        pool.sync_counts()
        self._persist()

        logger.info("Added %d slot(s) to %s zone (total %d)", count, zone_type.value, pool.total)
        return new_slots

    def update_location_config(self, name: str, amount: int, surveillance: bool) -> LocationConfig:
        """
        Replace the location configuration.

        Raises:
            ValidationError: If the name is empty or the price not positive
        """
        if _is_blank(name) or amount is None or amount <= 0:
            raise ValidationError("Please fill all fields")

        location = LocationConfig.build(
            name=name.strip(),
            amount=amount,
            duration=self.state.location.pricing.duration,
            surveillance=surveillance,
        )
        self.state.location = location
        self._refresh_preview()
        self._persist()

        logger.info("Location configuration updated: %s, %s", location.name, location.pricing.label)
        return location

    def configure_pricing(self, amount: int) -> Pricing:
        """
        Change the base price, keeping the base duration.

        Raises:
            ValidationError: If the price is not positive
        """
        if amount is None or amount <= 0:
            raise ValidationError(f"Invalid price: {amount}")

        pricing = Pricing.build(amount=amount, duration=self.state.location.pricing.duration)
        self.state.location.pricing = pricing
        self._refresh_preview()
        self._persist()

        logger.info("Pricing updated to %s", pricing.label)
        return pricing

    def factory_reset(self) -> None:
        """Wipe stored state and start again from the configured defaults."""
        self._repository.clear()
        user = self.state.current_user
        self.state = self._fresh_state()
        self.state.current_user = user
        logger.warning("Stored parking state wiped")

    def zone_stats(self) -> List[ZoneStats]:
        return [
            ZoneStats(
                zone=zone_type,
                available=zone.available_count(),
                occupied=zone.occupied_count(),
                total=zone.total,
            )
            for zone_type, zone in self.state.parking.items()
        ]

    def slots(self, zone: ZoneType | str) -> List[Slot]:
        return list(self.state.parking.zone(ZoneType.parse(zone)).slots)

    def active_bookings(
        self,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> List[Booking]:
        return [
            booking for booking in self._bookings_for(user_id, user_name)
            if booking.is_active
        ]

    def history(
        self,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
    ) -> List[Booking]:
        """Bookings that are no longer active."""
        return [
            booking for booking in self._bookings_for(user_id, user_name)
            if not booking.is_active
        ]

    def my_bookings(self) -> List[Booking]:
        """Active bookings made in the current session."""
        user = self.state.current_user
        if user is None:
            return []
        return self.active_bookings(user_id=user.id)

    def recent_activity(self, limit: int = 5) -> List[Booking]:
        """Latest bookings, newest first."""
        if limit <= 0:
            return []
        return list(reversed(self.state.bookings[-limit:]))

    def export_data(self) -> Dict[str, Any]:
        """Read-only snapshot of parking data and bookings."""
        return {
            "parkingData": self.state.parking.model_dump(mode="json", by_alias=True),
            "bookings": [
                booking.model_dump(mode="json", by_alias=True)
                for booking in self.state.bookings
            ],
            "exportTime": self._clock().in_timezone("UTC").to_iso8601_string(),
        }

    def _fresh_state(self) -> AppState:
        return AppState(
            parking=ParkingData.generate(self._layout, self._rng),
            location=self._default_location.model_copy(deep=True),
        )

    def _load_state(self) -> AppState:
        state = self._fresh_state()

        parking = self._repository.load_parking()
        if parking is not None:
            state.parking = parking

        bookings = self._repository.load_bookings()
        if bookings is not None:
            state.bookings = bookings

        location = self._repository.load_location()
        if location is not None:
            state.location = location

        return state

    def _persist(self) -> None:
        failed = self._repository.save(self.state)
        if failed:
            self._persistence_warning = PersistenceWarning(
                f"Could not save {', '.join(failed)}; changes are kept for this session only"
            )
            logger.warning("%s", self._persistence_warning)
        else:
            self._persistence_warning = None

    def _refresh_preview(self) -> None:
        if self.state.from_time and self.state.to_time:
            self.state.preview = self._calculator.quote(
                self.state.from_time,
                self.state.to_time,
                self.state.location.pricing,
            )

    def _resolve_slot_id(self, zone: ZoneType, slot_id: str) -> str:
        """Accept ``CAR-007``, ``car-007`` or a bare number like ``7``."""
        if _is_blank(slot_id):
            raise ValidationError("Please select a parking slot")
        value = slot_id.strip()
        if value.isdigit():
            return Slot.make_id(zone, int(value))
        return value.upper()

    def _require_free_slot(self, zone: ZoneType, slot_id: str) -> Slot:
        resolved = self._resolve_slot_id(zone, slot_id)
        slot = self.state.parking.zone(zone).find_slot(resolved)

        if slot is None:
            raise PreconditionError(f"Slot {resolved} does not exist in the {zone.value} zone")
        if slot.occupied:
            raise PreconditionError(f"Slot {slot.id} is occupied")
        if slot.reserved or self.state.active_booking_for_slot(slot.id) is not None:
            raise PreconditionError(f"Slot {slot.id} is already booked")
        return slot

    def _bookings_for(self, user_id: Optional[str], user_name: Optional[str]) -> List[Booking]:
        bookings = self.state.bookings
        if user_id is not None:
            bookings = [b for b in bookings if b.user_id == user_id]
        if user_name is not None:
            name = user_name.strip().lower()
            bookings = [b for b in bookings if b.user_name.lower() == name]
        return bookings

    def _now_millis(self) -> int:
        now = self._clock()
        return now.int_timestamp * 1000 + now.microsecond // 1000

    def _new_booking_id(self) -> str:
        """``BK`` + epoch milliseconds, bumped until unique."""
        existing = {booking.id for booking in self.state.bookings}
        millis = self._now_millis()
        while f"BK{millis}" in existing:
            millis += 1
        return f"BK{millis}"
