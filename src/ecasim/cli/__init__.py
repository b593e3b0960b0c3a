"""CLI module for the ECASIM asset simulator.

The CLI enables:
- Offline replay of a profile day against a topology
- Inspection of the effective configuration
"""

from .main import app, create_cli_app

__all__ = ["app", "create_cli_app"]
