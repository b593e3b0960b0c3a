"""Utility modules for the ECASIM asset simulator.

This module provides domain-specific constants, type definitions, and utility
functions for the Energy Community Asset Simulator.
"""

from . import enums, types

__all__ = ["enums", "types"]
