"""Wind turbine asset implementation for the ECASIM simulation system.

This module provides the WindTurbineState class that converts a wind speed
profile bin into infeed power, caps it by the external max-power setpoint and
back-derives the equivalent wind speed of the capped infeed.
"""

from dataclasses import dataclass

from pydantic import Field, model_validator

from ecasim.sim.assets.base import AssetState, Dynamics, read_optional_number
from ecasim.sim.profile import ProfileRow
from ecasim.utils.enums import AssetKind, WindPowerIndex
from ecasim.utils.types import WIND_SPEED_COLUMN_PREFIX, DynamicId, clamp, kW, safe_divide


@dataclass(frozen=True)
class WindResult:
    """Outcome of one wind turbine tick (infeed > 0)."""

    potential_kw: kW
    actual_kw: kW
    wind_speed_ms: float

    @property
    def power_vector(self) -> list[float]:
        """Power output vector ``[infeed potential, actual infeed, wind speed]``."""
        vector = [0.0, 0.0, 0.0]
        vector[WindPowerIndex.INFEED_POTENTIAL] = self.potential_kw
        vector[WindPowerIndex.ACTUAL_INFEED] = self.actual_kw
        vector[WindPowerIndex.WIND_SPEED] = self.wind_speed_ms
        return vector


class WindTurbineState(AssetState):
    """Wind turbine attached to a grid connector.

    Unlike PV, wind infeed is expressed as a positive source and is
    subtracted from the connector's net load.
    """

    asset_kind: AssetKind = Field(default=AssetKind.WIND, description="Kind of the asset")
    speed_bin: int = Field(default=1, ge=1, description="Wind speed profile column (WS-<bin>)")
    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the wind speed")
    conversion_factor_kw_per_ms: float = Field(default=1.0, ge=0.0, description="kW per m/s of wind speed")
    min_wind_speed_ms: float = Field(default=0.0, ge=0.0, description="Lower bound of the reported wind speed")
    max_wind_speed_ms: float = Field(default=25.0, ge=0.0, description="Upper bound of the reported wind speed")
    max_power_id: DynamicId | None = Field(default=None, description="Max infeed setpoint dynamic")

    @model_validator(mode="after")
    def validate_speed_band(self) -> "WindTurbineState":
        """Validate the wind speed band is not inverted."""
        if self.min_wind_speed_ms > self.max_wind_speed_ms:
            raise ValueError("min_wind_speed_ms must not exceed max_wind_speed_ms")
        return self

    @property
    def speed_column(self) -> str:
        """Profile column holding the selected wind speed bin."""
        return f"{WIND_SPEED_COLUMN_PREFIX}{self.speed_bin}"

    def step(self, row: ProfileRow, max_power_kw: kW | None) -> WindResult:
        """Compute potential and capped infeed.

        Args:
            row: Profile row of this tick
            max_power_kw: Max infeed setpoint, None for no cap

        Returns:
            Potential infeed, capped infeed and the equivalent wind speed
        """
        kw_per_ms = self.scale_factor * self.conversion_factor_kw_per_ms
        potential = row.get(self.speed_column, 0.0) * kw_per_ms

        actual = potential
        if max_power_kw is not None and actual > max_power_kw:
            actual = max_power_kw

        wind_speed = clamp(safe_divide(actual, kw_per_ms), self.min_wind_speed_ms, self.max_wind_speed_ms)
        return WindResult(potential_kw=potential, actual_kw=actual, wind_speed_ms=wind_speed)

    def update(self, row: ProfileRow, dynamics: Dynamics) -> WindResult:
        """Read the max infeed setpoint and compute this tick's infeed."""
        return self.step(row, read_optional_number(dynamics, self.max_power_id))
