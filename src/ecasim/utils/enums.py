"""Domain enumerations for the ECASIM asset simulator.

This module defines enumerations for the structure, connection and dynamic
type identifiers of the grid topology, as well as the simulation concepts
(seasons, flow directions, output vector layouts) used by the asset models.
"""

from enum import Enum, IntEnum


class Season(Enum):
    """Profile season selected from the simulation start time."""

    SUMMER = "summer"
    WINTER = "winter"

    @property
    def column_suffix(self) -> str:
        """Suffix of the seasonal profile columns (``LD-S``, ``PV-W``...)."""
        return "S" if self is Season.SUMMER else "W"


class FlowDirection(str, Enum):
    """Configured power flow direction of a grid sensor."""

    UP = "UP"
    DOWN = "DOWN"


class AssetKind(Enum):
    """Kinds of assets that can be attached to a grid connector."""

    LOAD = "load"
    PV = "pv"
    WIND = "wind"
    EV_CHARGER = "ev_charger"
    BATTERY = "battery"


class StructureType(str, Enum):
    """Structure type identifiers found in a topology snapshot."""

    POWER_GRID_CONNECTOR = "POWERGRID-CONNECTOR"
    NODE = "NODE"
    GRID_SENSOR = "GRID-SENSOR"

    # Assets attached below a connector
    SOLAR_PANEL = "SOLAR-PANEL"
    CHARGING_POLE = "CHARGING-POLE"
    BATTERY_SYSTEM = "BATTERY-SYSTEM"
    WIND_TURBINE = "WIND-TURBINE"

    # Buildings above a connector
    SOLAR_FARM = "SOLAR-FARM"
    EV_STATION = "EV-STATION"
    BATTERY_STATION = "BATTERY-STATION"
    SMALL_HOUSE = "SMALL-HOUSE"
    HUGE_HOUSE = "HUGE-HOUSE"


class ConnectionType(str, Enum):
    """Connection type identifiers found in a topology snapshot."""

    CABLE = "CABLE-UNDERGROUND-SD"
    TRANSFORMER = "LV-TRANSFORMER"


class DynamicType(str, Enum):
    """Dynamic (time series value) type identifiers."""

    ACTIVE_POWER = "ACTIVE-POWER-3P"
    CABLE_POWER = "CABLE-ACTIVE-POWER-3P"

    PV_SYSTEM_POWER = "PV-SYSTEM-POWER"
    PV_SYSTEM_MAX_POWER = "PV-SYSTEM-MAX-POWER"

    CHGSTATION_POWER = "CHGSTATION-POWER"
    CHGSTATION_MAX_POWER = "CHGSTATION-MAX-POWER"
    CHGSTATION_SOC = "CHGSTATION-SOC"

    BATTERY_POWER = "BATTERY-POWER"
    BATTERY_MAX_POWER = "BATTERY-MAX-POWER"
    BATTERY_SOC = "BATTERY-SOC"
    BATTERY_CAPACITY = "BATTERY-CAPACITY"

    WIND_TURBINE_POWER = "WIND-TURBINE-POWER"
    WIND_TURBINE_MAX_POWER = "WIND-TURBINE-MAX-POWER"

    GRID_SENSOR_NAME = "GRID-SENSOR-NAME"
    GRID_SENSOR_DIRECTION = "GRID-SENSOR-DIRECTION"
    GRID_SENSOR_POWERMEASUREMENT = "GRID-SENSOR-POWERMEASUREMENT"
    GRID_SENSOR_POWERLIMIT = "GRID-SENSOR-POWERLIMIT"


class PVPowerIndex(IntEnum):
    """Layout of the PV system power output vector."""

    INFEED_POTENTIAL = 0
    ACTUAL_INFEED = 1


class WindPowerIndex(IntEnum):
    """Layout of the wind turbine power output vector."""

    INFEED_POTENTIAL = 0
    ACTUAL_INFEED = 1
    WIND_SPEED = 2


class ChargingStationPowerIndex(IntEnum):
    """Layout of the charging station power output vector."""

    POWER_DEMAND = 0
    ACTUAL_POWER = 1
    SHIFTED_DEMAND = 2


class BatteryPowerIndex(IntEnum):
    """Layout of the battery system power output vector."""

    ACTUAL_POWER = 0
    CHARGE_POTENTIAL = 1
    DISCHARGE_POTENTIAL = 2


class BatteryMaxPowerIndex(IntEnum):
    """Layout of the battery system max-power setpoint vector."""

    CHARGE_LIMIT = 0
    DISCHARGE_LIMIT = 1
