"""
Tests for the command dispatcher.
"""

from random import Random

import pendulum
import pytest

from smartpark.adapters.repository import ParkingRepository
from smartpark.adapters.storage import InMemoryStorage
from smartpark.domain.exceptions import PreconditionError, ValidationError
from smartpark.domain.models import Booking, LocationConfig, PriceQuote, User, ZoneType
from smartpark.services.commands import CommandDispatcher, parse_bool, parse_int
from smartpark.services.parking_service import ParkingService


@pytest.fixture
def dispatcher() -> CommandDispatcher:
    service = ParkingService(
        ParkingRepository(InMemoryStorage()),
        layout={ZoneType.CAR: (10, 5), ZoneType.BIKE: (4, 0), ZoneType.BICYCLE: (2, 2)},
        clock=lambda: pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC"),
        rng=Random(0),
    )
    return CommandDispatcher(service)


class TestCommandDispatcher:
    """Tests for CommandDispatcher."""

    def test_booking_flow(self, dispatcher):
        """login -> select -> quote -> book, one operation per command."""
        _, user = dispatcher.dispatch_line("login alice secret")
        _, slot = dispatcher.dispatch_line("select car 7")
        _, quote = dispatcher.dispatch_line("quote 08:00 17:00")
        name, booking = dispatcher.dispatch_line('book "AP 09 XY 1234" 08:00 17:00')

        assert isinstance(user, User)
        assert slot.id == "CAR-007"
        assert isinstance(quote, PriceQuote)
        assert quote.cost == 30
        assert name == "book"
        assert isinstance(booking, Booking)
        assert booking.vehicle_number == "AP 09 XY 1234"
        assert booking.cost == 30

    def test_login_with_role(self, dispatcher):
        _, user = dispatcher.dispatch_line("login root pw ADMIN")

        assert user.is_admin

    def test_cancel_and_history(self, dispatcher):
        dispatcher.dispatch_line("login alice secret")
        dispatcher.dispatch_line("select bike BIKE-002")
        _, booking = dispatcher.dispatch_line("book AP1 10:00 11:00")

        cancelled = dispatcher.dispatch("cancel", [booking.id])
        _, history = dispatcher.dispatch_line("history")

        assert not cancelled.is_active
        assert history == [cancelled]

    def test_admin_commands(self, dispatcher):
        _, added = dispatcher.dispatch_line("add-slots bicycle 3")
        _, location = dispatcher.dispatch_line("configure 'City Mall' 30 no")
        _, pricing = dispatcher.dispatch_line("pricing 35")
        _, discarded = dispatcher.dispatch_line("reset")

        assert [slot.id for slot in added] == ["BICYCLE-003", "BICYCLE-004", "BICYCLE-005"]
        assert isinstance(location, LocationConfig)
        assert location.name == "City Mall"
        assert not location.surveillance
        assert pricing.label == "₹35 for 7 Hours"
        assert discarded == 0

    def test_stats_and_export(self, dispatcher):
        _, stats = dispatcher.dispatch_line("stats")
        _, export = dispatcher.dispatch_line("export")

        assert [entry.available for entry in stats] == [5, 4, 0]
        assert set(export) == {"parkingData", "bookings", "exportTime"}

    def test_unknown_command(self, dispatcher):
        with pytest.raises(ValidationError, match="Unknown command"):
            dispatcher.dispatch_line("fly car")

    def test_wrong_arity_shows_usage(self, dispatcher):
        with pytest.raises(ValidationError, match="Usage: select ZONE SLOT"):
            dispatcher.dispatch_line("select car")

    def test_bad_number(self, dispatcher):
        with pytest.raises(ValidationError, match="COUNT must be a whole number"):
            dispatcher.dispatch_line("add-slots car many")

    def test_unbalanced_quotes(self, dispatcher):
        with pytest.raises(ValidationError, match="Could not parse"):
            dispatcher.dispatch_line('book "AP 1 10:00 12:00')

    def test_empty_line(self, dispatcher):
        with pytest.raises(ValidationError):
            dispatcher.dispatch_line("   ")

    def test_service_errors_propagate(self, dispatcher):
        with pytest.raises(PreconditionError):
            dispatcher.dispatch_line("select car CAR-001")

    def test_only_mutating_commands_persist(self, dispatcher):
        assert dispatcher.persists("book")
        assert dispatcher.persists("pricing")
        assert not dispatcher.persists("stats")
        assert not dispatcher.persists("quote")
        assert not dispatcher.persists("fly")

    def test_every_command_has_usage(self, dispatcher):
        names = [spec.name for spec in dispatcher.commands]

        assert "book" in names
        assert all(spec.usage.startswith(spec.name) for spec in dispatcher.commands)


class TestParsers:
    """Tests for argument parsers."""

    def test_parse_int(self):
        assert parse_int("12", "COUNT") == 12
        with pytest.raises(ValidationError):
            parse_int("1.5", "COUNT")

    @pytest.mark.parametrize("word,expected", [("yes", True), ("ON", True), ("no", False), ("0", False)])
    def test_parse_bool(self, word, expected):
        assert parse_bool(word, "SURVEILLANCE") is expected

    def test_parse_bool_rejects_other_words(self):
        with pytest.raises(ValidationError):
            parse_bool("maybe", "SURVEILLANCE")
