"""Grid connector state for the ECASIM simulation system.

A power grid connector (PGC) aggregates the assets of one building into a
single net three phase power value. The assets are evaluated in a fixed order
(load, PV, wind, EV charger, battery) and their signed contributions summed.
"""

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from ecasim.config.schema import AssetSimConfig
from ecasim.sim.assets.base import Dynamics
from ecasim.sim.assets.battery import BatteryState
from ecasim.sim.assets.ev_charger import CarAssignment, EVChargerState
from ecasim.sim.assets.load import LoadState
from ecasim.sim.assets.solar import PVSystemState
from ecasim.sim.assets.wind import WindTurbineState
from ecasim.sim.profile import ProfileRow
from ecasim.utils.enums import AssetKind, Season
from ecasim.utils.types import DynamicId, balanced_three_phase


@dataclass
class ConnectorResult:
    """Outputs of one connector tick keyed by dynamic id."""

    connector_id: str
    net_power_kw: float = 0.0
    values: dict[DynamicId, Any] = field(default_factory=dict)


class ConnectorState(BaseModel):
    """Grid connection point and the assets attached to it.

    Asset presence is decided once when the topology is resolved; at most one
    asset of each kind is attached.
    """

    connector_id: str = Field(..., min_length=1, description="Structure id of the connector")
    power_id: DynamicId = Field(..., min_length=1, description="Dynamic receiving the net three phase power")
    parent_building_id: str | None = Field(default=None, description="EV station supplied by this connector")

    load: LoadState = Field(default_factory=LoadState, description="Base load")
    pv: PVSystemState | None = Field(default=None, description="Attached PV system")
    wind: WindTurbineState | None = Field(default=None, description="Attached wind turbine")
    ev_charger: EVChargerState | None = Field(default=None, description="Attached EV charger")
    battery: BatteryState | None = Field(default=None, description="Attached battery system")

    @property
    def asset_kinds(self) -> list[AssetKind]:
        """Kinds of the attached assets in evaluation order."""
        kinds = [AssetKind.LOAD]
        if self.pv is not None:
            kinds.append(AssetKind.PV)
        if self.wind is not None:
            kinds.append(AssetKind.WIND)
        if self.ev_charger is not None:
            kinds.append(AssetKind.EV_CHARGER)
        if self.battery is not None:
            kinds.append(AssetKind.BATTERY)
        return kinds

    def update(
        self,
        row: ProfileRow,
        season: Season,
        dynamics: Dynamics,
        config: AssetSimConfig,
        assignment: CarAssignment | None = None,
        values: dict[DynamicId, Any] | None = None,
    ) -> ConnectorResult:
        """Advance all attached assets by one tick.

        Asset outputs are written as soon as each asset is done, so when a
        later asset raises, ``values`` still holds the earlier outputs.

        Args:
            row: Profile row of this tick
            season: Season selecting the seasonal profile columns
            dynamics: Values supplied for this tick
            config: Simulator configuration
            assignment: Car assignment of the parent EV station, if reported
            values: Output mapping to write into (a new one by default)

        Returns:
            Net power and the per-asset output values
        """
        result = ConnectorResult(connector_id=self.connector_id, values=values if values is not None else {})
        dt_hours = config.simulation.tick_duration_hours
        net_power = self.load.power(row, season)

        if self.pv is not None:
            pv = self.pv.update(row, season, dynamics)
            result.values[self.pv.output_id] = pv.power_vector
            net_power += pv.actual_kw

        if self.wind is not None:
            wind = self.wind.update(row, dynamics)
            result.values[self.wind.output_id] = wind.power_vector
            net_power -= wind.actual_kw

        if self.ev_charger is not None:
            ev = self.ev_charger.update(
                row,
                dynamics,
                config.structure_types.ev_station,
                dt_hours,
                assignment=assignment,
                reality_twin_mode=config.simulation.reality_twin_mode,
            )
            if ev.slot_soc_percent is not None and self.ev_charger.soc_id:
                result.values[self.ev_charger.soc_id] = ev.slot_soc_percent
            result.values[self.ev_charger.output_id] = ev.power_vector
            net_power += ev.actual_kw

        if self.battery is not None:
            battery = self.battery.update(dynamics, dt_hours)
            result.values[self.battery.soc_id] = battery.soc_percent
            result.values[self.battery.output_id] = battery.power_vector
            net_power += battery.actual_power_kw

        result.net_power_kw = net_power
        result.values[self.power_id] = balanced_three_phase(net_power)
        return result
