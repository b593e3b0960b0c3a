"""Asset module for the ECASIM asset simulator.

This module provides the per-connector asset models (load, PV system, wind
turbine, EV charger and battery system) that are advanced once per tick.
"""

from .base import AssetState
from .battery import BatteryResult, BatteryState
from .ev_charger import CarAssignment, CarSlot, EVChargerState, EVChargeResult, reconcile_charging
from .load import LoadState
from .solar import InfeedResult, PVSystemState
from .wind import WindResult, WindTurbineState

__all__ = [
    "AssetState",
    "BatteryResult",
    "BatteryState",
    "CarAssignment",
    "CarSlot",
    "EVChargeResult",
    "EVChargerState",
    "InfeedResult",
    "LoadState",
    "PVSystemState",
    "WindResult",
    "WindTurbineState",
    "reconcile_charging",
]
