"""
Loads and saves the application state as three JSON blobs.

Stored blobs are validated against the record schemas on load. A blob that
is not valid JSON or does not match its schema is logged and treated as
absent, so the caller falls back to defaults instead of trusting it.
"""

import logging
from typing import Any, List, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as SchemaError

from ..domain.models import AppState, Booking, LocationConfig, ParkingData
from .storage import KeyValueStorage

logger = logging.getLogger(__name__)

BOOKINGS_KEY = "smartpark_bookings"
PARKING_KEY = "smartpark_parking"
CONFIG_KEY = "smartpark_config"

_BOOKINGS = TypeAdapter(List[Booking])
_PARKING = TypeAdapter(ParkingData)
_LOCATION = TypeAdapter(LocationConfig)


def _dump(adapter: TypeAdapter, value: Any) -> str:
    return adapter.dump_json(value, by_alias=True).decode("utf-8")


def dump_bookings(bookings: List[Booking]) -> str:
    return _dump(_BOOKINGS, bookings)


def dump_parking(parking: ParkingData) -> str:
    return _dump(_PARKING, parking)


def dump_location(location: LocationConfig) -> str:
    return _dump(_LOCATION, location)


class ParkingRepository:
    """Persists bookings, parking data and location config under fixed keys."""

    KEYS = (BOOKINGS_KEY, PARKING_KEY, CONFIG_KEY)

    def __init__(self, storage: KeyValueStorage):
        self.storage = storage

    def load_bookings(self) -> Optional[List[Booking]]:
        return self._load(BOOKINGS_KEY, _BOOKINGS)

    def load_parking(self) -> Optional[ParkingData]:
        return self._load(PARKING_KEY, _PARKING)

    def load_location(self) -> Optional[LocationConfig]:
        return self._load(CONFIG_KEY, _LOCATION)

    def save(self, state: AppState) -> List[str]:
        """
        Write all three blobs.

        Returns:
            Keys whose write failed (empty when everything was stored)
        """
        blobs = {
            BOOKINGS_KEY: dump_bookings(state.bookings),
            PARKING_KEY: dump_parking(state.parking),
            CONFIG_KEY: dump_location(state.location),
        }

        failed: List[str] = []
        for key, blob in blobs.items():
            if not self.storage.set(key, blob):
                failed.append(key)
        return failed

    def clear(self) -> None:
        """Remove every stored blob."""
        for key in self.KEYS:
            self.storage.clear(key)

    def _load(self, key: str, adapter: TypeAdapter) -> Any:
        blob = self.storage.get(key)
        if blob is None:
            return None

        try:
            return adapter.validate_json(blob)
        except SchemaError as exc:
            logger.warning(
                "Discarding stored %s: %d validation error(s), first: %s",
                key,
                exc.error_count(),
                exc.errors()[0]["msg"],
            )
            return None
