"""
SmartPark - parking slot occupancy, booking and pricing for a single site.
"""

__version__ = "0.1.0"
