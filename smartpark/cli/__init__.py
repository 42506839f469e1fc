"""
Command-line presentation layer.
"""

from .app import app

__all__ = ["app"]
