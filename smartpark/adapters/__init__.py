"""
Adapters layer - State persistence through a key-value storage.
"""

from .repository import ParkingRepository
from .storage import InMemoryStorage, JsonFileStorage, KeyValueStorage

__all__ = ["InMemoryStorage", "JsonFileStorage", "KeyValueStorage", "ParkingRepository"]
