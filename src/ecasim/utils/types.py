"""Type definitions and constants for the ECASIM asset simulator.

This module provides type aliases, domain constants, and small numeric helper
functions shared by the asset models.
"""

import math
from typing import TypeAlias

# =============================================================================
# Power and Energy Type Definitions
# =============================================================================

kW: TypeAlias = float  # Kilowatts
kWh: TypeAlias = float  # Kilowatt-hours
Percent: TypeAlias = float  # 0 to 100

DynamicId: TypeAlias = str
ConnectorId: TypeAlias = str
SensorId: TypeAlias = str
BuildingId: TypeAlias = str
CarId: TypeAlias = int

# Three phase power vector as delivered by the grid power-flow computation
ThreePhasePower: TypeAlias = list[float]

# =============================================================================
# Time Constants
# =============================================================================

SECONDS_PER_DAY: int = 86400
SECONDS_PER_HOUR: int = 3600
DEFAULT_SAMPLING_RATE_SECONDS: int = 60

# Season boundaries as seconds since the start of the year
SUMMER_START_SECONDS: int = 6_739_200  # ~March 21st
SUMMER_END_SECONDS: int = 22_809_600  # ~September 21st

# =============================================================================
# Asset Constants
# =============================================================================

PHASE_COUNT: int = 3
EMPTY_BAY_CAR_ID: CarId = -1
MANAGED_STATION_SLOTS: int = 3
INACTIVE_SENSOR_NAME: str = "Inactive"

# Profile column names
LOAD_COLUMN_PREFIX: str = "LD-"
PV_COLUMN_PREFIX: str = "PV-"
EV_COLUMN: str = "EV"
EV_SLOT_COLUMN_PREFIX: str = "EV-ID_Slot"
WIND_SPEED_COLUMN_PREFIX: str = "WS-"

# =============================================================================
# Numeric Utility Functions
# =============================================================================


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value to the closed interval [lower, upper]."""
    return max(lower, min(value, upper))


def clamp_percent(value: Percent) -> Percent:
    """Clamp a percentage to [0, 100]."""
    return clamp(value, 0.0, 100.0)


def finite_or_zero(value: float | None) -> float:
    """Replace None, NaN and infinities by zero."""
    if value is None:
        return 0.0
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        return 0.0
    return value


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0.0 for a zero denominator."""
    if denominator == 0.0:
        return 0.0
    return numerator / denominator


def seconds_to_hours(seconds: float) -> float:
    """Convert seconds to hours."""
    return seconds / SECONDS_PER_HOUR


def seconds_of_day(start_at: int, simulation_at: int) -> int:
    """Wrap an absolute simulation time onto the repeating profile day."""
    return int(start_at + simulation_at) % SECONDS_PER_DAY


def phase_average(power: ThreePhasePower) -> float:
    """Average of a three phase power vector."""
    if len(power) < PHASE_COUNT:
        raise ValueError(f"Expected {PHASE_COUNT} phase values, got {len(power)}")
    return (power[0] + power[1] + power[2]) / PHASE_COUNT


def balanced_three_phase(total: float) -> ThreePhasePower:
    """Split a total power value evenly across the three phases."""
    per_phase = total / PHASE_COUNT
    return [per_phase, per_phase, per_phase]
