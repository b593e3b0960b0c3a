"""Configuration schema models for the ECASIM asset simulator.

This module defines Pydantic models for configuration validation: the asset
defaults, the per structure type overrides applied when the topology is
resolved, the EV car catalogue and the simulation/logging runtime settings.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ecasim.utils.logger import DEFAULT_LOG_FORMAT
from ecasim.utils.types import (
    DEFAULT_SAMPLING_RATE_SECONDS,
    EMPTY_BAY_CAR_ID,
    SUMMER_END_SECONDS,
    SUMMER_START_SECONDS,
    seconds_to_hours,
)


class LogLevel(str, Enum):
    """Valid logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BatterySystemConfig(BaseModel):
    """Static charge/discharge capability of a battery system."""

    charge_power_kw: float = Field(default=5.0, ge=0.0, description="Maximum charge power in kW")
    discharge_power_kw: float = Field(default=5.0, ge=0.0, description="Maximum discharge power in kW")


class LoadConfig(BaseModel):
    """Load profile scaling."""

    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the load profile")


class SolarSystemConfig(BaseModel):
    """PV profile scaling."""

    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the PV profile")


class EVChargerConfig(BaseModel):
    """Generic EV charger parameters."""

    charging_slots: int = Field(default=1, ge=1, le=64, description="Number of charging slots")
    max_power_per_slot_kw: float = Field(default=4.0, ge=0.0, description="Maximum power per slot in kW")


class CarStats(BaseModel):
    """Catalogue entry for one electric car model."""

    max_capacity_kwh: float = Field(..., ge=0.0, description="Usable battery capacity in kWh")
    power_kw: float = Field(..., ge=0.0, description="Rated charging power in kW")


class SolarFarmConfig(BaseModel):
    """Overrides applied to connectors below a solar farm."""

    solar_system: SolarSystemConfig = Field(default_factory=lambda: SolarSystemConfig(scale_factor=8.0))
    load: LoadConfig = Field(default_factory=lambda: LoadConfig(scale_factor=0.0))


class EVStationConfig(BaseModel):
    """Overrides applied to connectors below an EV station."""

    ev_charger: EVChargerConfig = Field(default_factory=lambda: EVChargerConfig(charging_slots=3))
    load: LoadConfig = Field(default_factory=lambda: LoadConfig(scale_factor=0.0))
    car_stats: dict[int, CarStats] = Field(default_factory=dict, description="Car catalogue keyed by car id")
    initial_charge_fraction: float = Field(
        default=0.15, ge=0.0, le=1.0, description="Charge of a newly arrived car as fraction of its capacity"
    )
    demand_power_factor: float = Field(
        default=4.0, ge=0.0, description="Multiplier from rated car power to per-slot demand"
    )
    power_limit_factor: float = Field(
        default=6.0, ge=0.0, description="Multiplier from rated car power to per-slot power limit"
    )

    def get_car_stats(self, car_id: int) -> CarStats:
        """Look up a car model, returning zero stats for empty bays and unknown ids."""
        stats = self.car_stats.get(car_id)
        if stats is None:
            return CarStats(max_capacity_kwh=0.0, power_kw=0.0)
        return stats

    def is_known_car(self, car_id: int) -> bool:
        """Check whether a car id is an occupied bay with catalogue data."""
        return car_id != EMPTY_BAY_CAR_ID and car_id in self.car_stats


class SmallHouseConfig(BaseModel):
    """Overrides applied to connectors below a small house."""

    load: LoadConfig = Field(default_factory=lambda: LoadConfig(scale_factor=2.0))


class HugeHouseConfig(BaseModel):
    """Overrides applied to connectors below a huge house."""

    load: LoadConfig = Field(default_factory=lambda: LoadConfig(scale_factor=10.0))


class BatteryStationConfig(BaseModel):
    """Overrides applied to connectors below a battery station."""

    battery_system: BatterySystemConfig = Field(
        default_factory=lambda: BatterySystemConfig(charge_power_kw=10.0, discharge_power_kw=10.0)
    )
    load: LoadConfig = Field(default_factory=lambda: LoadConfig(scale_factor=0.0))


class StructureTypesConfig(BaseModel):
    """Structure specific configuration."""

    solar_farm: SolarFarmConfig = Field(default_factory=SolarFarmConfig)
    ev_station: EVStationConfig = Field(default_factory=EVStationConfig)
    small_house: SmallHouseConfig = Field(default_factory=SmallHouseConfig)
    huge_house: HugeHouseConfig = Field(default_factory=HugeHouseConfig)
    battery_station: BatteryStationConfig = Field(default_factory=BatteryStationConfig)


class WindConfig(BaseModel):
    """Wind turbine conversion parameters."""

    speed_bin: int = Field(default=1, ge=1, description="Wind speed profile column (WS-<bin>) to read")
    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the wind speed profile")
    conversion_factor_kw_per_ms: float = Field(
        default=1.0, ge=0.0, description="Conversion from wind speed in m/s to power in kW"
    )
    min_wind_speed_ms: float = Field(default=0.0, ge=0.0, description="Lower bound of the reported wind speed")
    max_wind_speed_ms: float = Field(default=25.0, ge=0.0, description="Upper bound of the reported wind speed")

    @model_validator(mode="after")
    def validate_speed_band(self) -> "WindConfig":
        """Validate the wind speed band is not inverted."""
        if self.min_wind_speed_ms > self.max_wind_speed_ms:
            raise ValueError("min_wind_speed_ms must not exceed max_wind_speed_ms")
        return self


class SimulationConfig(BaseModel):
    """Configuration for the tick cycle."""

    sampling_rate_seconds: int = Field(
        default=DEFAULT_SAMPLING_RATE_SECONDS, ge=1, le=86400, description="Duration of one tick in seconds"
    )
    hooks: list[int] = Field(default_factory=lambda: [100, 910], description="Host hook numbers, one per tick phase")
    reality_twin_mode: bool = Field(
        default=False, description="Take EV bay occupancy only from the external feed, not from the profile"
    )
    summer_start_seconds: int = Field(default=SUMMER_START_SECONDS, ge=0, description="Start of summer profiles")
    summer_end_seconds: int = Field(default=SUMMER_END_SECONDS, ge=0, description="End of summer profiles")

    @field_validator("hooks")
    @classmethod
    def validate_hooks(cls, v: list[int]) -> list[int]:
        """Validate that at least one hook is configured."""
        if not v:
            raise ValueError("At least one hook must be configured")
        return v

    @model_validator(mode="after")
    def validate_season(self) -> "SimulationConfig":
        """Validate the summer window is ordered."""
        if self.summer_start_seconds >= self.summer_end_seconds:
            raise ValueError("summer_start_seconds must be before summer_end_seconds")
        return self

    @property
    def tick_duration_hours(self) -> float:
        """Duration of one tick in hours."""
        return seconds_to_hours(self.sampling_rate_seconds)


class LoggingConfig(BaseModel):
    """Configuration for logging parameters."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    format: str = Field(default=DEFAULT_LOG_FORMAT, description="Log message format")
    enable_console: bool = Field(default=True, description="Enable console output")

    model_config = ConfigDict(use_enum_values=True)


class AssetSimConfig(BaseModel):
    """Main configuration model for the asset simulator."""

    version: str = Field(default="0.1.0", description="Configuration version")
    simulation: SimulationConfig = Field(default_factory=SimulationConfig, description="Tick cycle configuration")
    battery_system: BatterySystemConfig = Field(
        default_factory=BatterySystemConfig, description="Default battery capability"
    )
    ev_charger: EVChargerConfig = Field(default_factory=EVChargerConfig, description="Default EV charger")
    structure_types: StructureTypesConfig = Field(
        default_factory=StructureTypesConfig, description="Per structure type overrides"
    )
    wind: WindConfig = Field(default_factory=WindConfig, description="Wind turbine configuration")
    logging: LoggingConfig = Field(default_factory=LoggingConfig, description="Logging configuration")

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3 or not all(part.isdigit() for part in parts):
            raise ValueError("Version must be in format X.Y.Z")
        return v

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "version": "0.1.0",
                "simulation": {"sampling_rate_seconds": 60, "hooks": [100, 910], "reality_twin_mode": False},
                "battery_system": {"charge_power_kw": 5, "discharge_power_kw": 5},
                "structure_types": {
                    "ev_station": {
                        "car_stats": {
                            "1": {"max_capacity_kwh": 50, "power_kw": 2.75},
                            "2": {"max_capacity_kwh": 77, "power_kw": 2.75},
                        }
                    }
                },
            }
        },
    )
