"""PV system asset implementation for the ECASIM simulation system.

PV infeed is taken from the seasonal PV profile (negative values, infeed
reduces the net load of a connector) and capped by the external max-power
setpoint.
"""

from dataclasses import dataclass

from pydantic import Field

from ecasim.sim.assets.base import AssetState, Dynamics, read_optional_number
from ecasim.sim.profile import ProfileRow
from ecasim.utils.enums import AssetKind, PVPowerIndex, Season
from ecasim.utils.types import PV_COLUMN_PREFIX, DynamicId, kW


@dataclass(frozen=True)
class InfeedResult:
    """Outcome of one PV tick in the connector sign convention (infeed < 0)."""

    potential_kw: kW
    actual_kw: kW

    @property
    def power_vector(self) -> list[float]:
        """Power output vector ``[infeed potential, actual infeed]`` as positive infeed."""
        vector = [0.0, 0.0]
        vector[PVPowerIndex.INFEED_POTENTIAL] = -self.potential_kw
        vector[PVPowerIndex.ACTUAL_INFEED] = -self.actual_kw
        return vector


class PVSystemState(AssetState):
    """Solar panel attached to a grid connector."""

    asset_kind: AssetKind = Field(default=AssetKind.PV, description="Kind of the asset")
    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the PV profile")
    max_power_id: DynamicId | None = Field(default=None, description="Max infeed setpoint dynamic")

    def potential(self, row: ProfileRow, season: Season) -> kW:
        """Uncapped infeed for this tick (negative)."""
        return row.get(f"{PV_COLUMN_PREFIX}{season.column_suffix}", 0.0) * self.scale_factor

    def step(self, row: ProfileRow, season: Season, max_power_kw: kW | None) -> InfeedResult:
        """Compute potential and capped infeed.

        Args:
            row: Profile row of this tick
            season: Season selecting the PV column
            max_power_kw: Max infeed setpoint (positive), None for no cap

        Returns:
            Potential and actual infeed
        """
        potential = self.potential(row, season)
        actual = potential
        if max_power_kw is not None and -potential > max_power_kw:
            actual = -max_power_kw
        return InfeedResult(potential_kw=potential, actual_kw=actual)

    def update(self, row: ProfileRow, season: Season, dynamics: Dynamics) -> InfeedResult:
        """Read the max infeed setpoint and compute this tick's infeed."""
        return self.step(row, season, read_optional_number(dynamics, self.max_power_id))
