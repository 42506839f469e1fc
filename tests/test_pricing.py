"""
Tests for the pricing calculator.
"""

import pytest

from smartpark.domain.exceptions import ValidationError
from smartpark.domain.models import Pricing
from smartpark.domain.pricing import PricingCalculator


@pytest.fixture
def calculator() -> PricingCalculator:
    return PricingCalculator(extra_hour_rate=5)


@pytest.fixture
def pricing() -> Pricing:
    return Pricing.build(amount=20, duration=7)


class TestPricingCalculator:
    """Tests for PricingCalculator."""

    @pytest.mark.parametrize("to_time", ["09:00", "11:30", "14:59", "15:00"])
    def test_base_price_up_to_base_duration(self, calculator, pricing, to_time):
        """Anything up to the base duration costs exactly the base price."""
        quote = calculator.quote("08:00", to_time, pricing)

        assert quote.cost == 20

    def test_extra_hours_are_charged(self, calculator, pricing):
        """9 hours with a 7 hour base: 20 + 2 * 5."""
        quote = calculator.quote("08:00", "17:00", pricing)

        assert quote.duration_hours == 9
        assert quote.cost == 30

    def test_started_extra_hour_counts_as_full_hour(self, calculator, pricing):
        quote = calculator.quote("08:00", "15:30", pricing)

        assert quote.duration_hours == 8
        assert quote.cost == 25

    def test_duration_is_rounded_up(self, calculator, pricing):
        quote = calculator.quote("10:00", "10:20", pricing)

        assert quote.duration_hours == 1
        assert quote.cost == 20

    def test_interval_wraps_past_midnight(self, calculator, pricing):
        """23:00 to 01:00 is two hours, not minus 22."""
        quote = calculator.quote("23:00", "01:00", pricing)

        assert quote.duration_hours == 2
        assert quote.cost == 20

    def test_long_overnight_interval(self, calculator, pricing):
        quote = calculator.quote("20:00", "08:00", pricing)

        assert quote.duration_hours == 12
        assert quote.cost == 45

    def test_equal_times_are_rejected(self, calculator, pricing):
        """A zero-length interval is invalid rather than a full day."""
        with pytest.raises(ValidationError, match="must differ"):
            calculator.quote("10:00", "10:00", pricing)

    @pytest.mark.parametrize("bad", ["", "7pm", "24:00"])
    def test_malformed_times_are_rejected(self, calculator, pricing, bad):
        with pytest.raises(ValidationError):
            calculator.quote(bad, "10:00", pricing)

    def test_custom_rate_and_base(self, pricing):
        calculator = PricingCalculator(extra_hour_rate=10)

        quote = calculator.quote("00:00", "10:00", Pricing.build(amount=50, duration=4))

        assert quote.cost == 50 + 6 * 10

    def test_quote_carries_pricing_label(self, calculator, pricing):
        quote = calculator.quote("10:00", "11:00", pricing)

        assert quote.label == "₹20 for 7 Hours"
        assert quote.format_display() == "1 hours | ₹20"

    def test_identical_inputs_give_identical_quotes(self, calculator, pricing):
        first = calculator.quote("06:10", "19:45", pricing)
        second = calculator.quote("06:10", "19:45", pricing)

        assert first == second
