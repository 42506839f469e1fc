"""
Convenience entry point for running smartpark directly.

Usage: python -m smartpark [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
