"""
Parking fee calculation.

Pure domain logic: no storage, no clock, no I/O. The same calculator serves
the live cost preview and the final booking so both always agree.
"""

from datetime import time

from .exceptions import ValidationError
from .models import PriceQuote, Pricing, parse_time_of_day

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


def _ceil_div(numerator: int, denominator: int) -> int:
    return -(-numerator // denominator)


def _minutes_since_midnight(value: time) -> int:
    return value.hour * MINUTES_PER_HOUR + value.minute


class PricingCalculator:
    """
    Calculates booking duration and cost for a time-of-day interval.

    Pricing model:
    1. The base price covers up to ``pricing.duration`` hours
    2. Every started hour beyond that adds ``extra_hour_rate``
    3. An interval ending before it starts runs past midnight

    All arithmetic is done in whole minutes to avoid float rounding.
    """

    def __init__(self, extra_hour_rate: int = 5):
        self.extra_hour_rate = extra_hour_rate

    def interval_minutes(self, from_time: str, to_time: str) -> int:
        """
        Length of the interval in minutes, wrapping past midnight.

        Raises:
            ValidationError: If a time is malformed or both times are equal
        """
        start = _minutes_since_midnight(parse_time_of_day(from_time))
        end = _minutes_since_midnight(parse_time_of_day(to_time))

        if start == end:
            raise ValidationError("Start and end time must differ")

        minutes = end - start
        if minutes < 0:
            minutes += MINUTES_PER_DAY
        return minutes

    def quote(self, from_time: str, to_time: str, pricing: Pricing) -> PriceQuote:
        """
        Calculate duration and cost of parking from ``from_time`` to ``to_time``.

        Args:
            from_time: Start time of day (``HH:MM``)
            to_time: End time of day (``HH:MM``)
            pricing: Active pricing configuration

        Returns:
            PriceQuote with the duration rounded up to whole hours

        Raises:
            ValidationError: If the interval is invalid
        """
        minutes = self.interval_minutes(from_time, to_time)
        base_minutes = pricing.duration * MINUTES_PER_HOUR

        cost = pricing.amount
        if minutes > base_minutes:
            extra_hours = _ceil_div(minutes - base_minutes, MINUTES_PER_HOUR)
            cost += extra_hours * self.extra_hour_rate

        return PriceQuote(
            duration_hours=_ceil_div(minutes, MINUTES_PER_HOUR),
            cost=cost,
            label=pricing.label,
        )
