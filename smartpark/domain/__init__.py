"""
Domain layer - Pure business logic without external dependencies.
"""

from .exceptions import PersistenceWarning, PreconditionError, SmartParkError, ValidationError
from .models import (
    AppState,
    Booking,
    BookingStatus,
    LocationConfig,
    ParkingData,
    PriceQuote,
    Pricing,
    Slot,
    User,
    UserRole,
    Zone,
    ZoneType,
)
from .pricing import PricingCalculator

__all__ = [
    "AppState",
    "Booking",
    "BookingStatus",
    "LocationConfig",
    "ParkingData",
    "PersistenceWarning",
    "PreconditionError",
    "PriceQuote",
    "Pricing",
    "PricingCalculator",
    "Slot",
    "SmartParkError",
    "User",
    "UserRole",
    "ValidationError",
    "Zone",
    "ZoneType",
]
