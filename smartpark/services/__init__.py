"""
Service layer helpers that own the application state and dispatch actions.
"""

from .commands import CommandDispatcher
from .parking_service import ParkingService, ZoneStats

__all__ = ["CommandDispatcher", "ParkingService", "ZoneStats"]
