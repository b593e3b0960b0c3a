"""Battery system asset implementation for the ECASIM simulation system.

This module provides the BatteryState class that tracks the energy stored in a
battery across ticks and derives the realized charge/discharge power from the
externally supplied max-power setpoints.

The stored energy is the persisted quantity: when the externally reported
capacity changes between two ticks, the state of charge is re-derived from the
stored energy and not the other way round.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from pydantic import Field

from ecasim.sim.assets.base import AssetState, Dynamics, read_number, read_vector
from ecasim.utils.enums import AssetKind, BatteryMaxPowerIndex, BatteryPowerIndex
from ecasim.utils.types import DynamicId, Percent, clamp_percent, kW, kWh

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatteryResult:
    """Outcome of one battery tick."""

    soc_percent: Percent
    actual_power_kw: kW
    charge_potential_kw: kW
    discharge_potential_kw: kW

    @property
    def power_vector(self) -> list[float]:
        """Power output vector ``[actual, charge potential, -discharge potential]``."""
        vector = [0.0, 0.0, 0.0]
        vector[BatteryPowerIndex.ACTUAL_POWER] = self.actual_power_kw
        vector[BatteryPowerIndex.CHARGE_POTENTIAL] = self.charge_potential_kw
        vector[BatteryPowerIndex.DISCHARGE_POTENTIAL] = -self.discharge_potential_kw
        return vector


class BatteryState(AssetState):
    """Battery energy storage attached to a grid connector.

    Models the stored energy of a battery with:
    - State of Charge (SoC) re-derivation after external capacity changes
    - Charge/discharge headroom limited by SoC, tick length and capability
    - Signed max-power setpoints (positive charges, negative discharges)
    """

    asset_kind: AssetKind = Field(default=AssetKind.BATTERY, description="Kind of the asset")

    charge_power_kw: kW = Field(default=5.0, ge=0.0, description="Maximum charge power in kW")
    discharge_power_kw: kW = Field(default=5.0, ge=0.0, description="Maximum discharge power in kW")
    stored_energy_kwh: kWh | None = Field(
        default=None, description="Energy stored after the last tick, None before the first tick"
    )

    max_power_id: DynamicId = Field(..., min_length=1, description="Charge/discharge limit setpoint dynamic")
    soc_id: DynamicId = Field(..., min_length=1, description="State of charge dynamic (percent)")
    capacity_id: DynamicId = Field(..., min_length=1, description="Capacity dynamic (kWh)")

    def reconcile_soc(self, soc_percent: Percent, capacity_kwh: kWh) -> Percent:
        """Re-derive the state of charge from the persisted stored energy.

        Args:
            soc_percent: Externally reported state of charge
            capacity_kwh: Externally reported capacity

        Returns:
            State of charge consistent with the stored energy
        """
        if self.stored_energy_kwh is None:
            return soc_percent

        reported_energy = soc_percent * capacity_kwh / 100.0
        if math.isclose(reported_energy, self.stored_energy_kwh, rel_tol=1e-9, abs_tol=1e-9):
            return soc_percent

        if capacity_kwh <= 0:
            return 0.0

        logger.debug(
            f"Battery {self.asset_id}: capacity changed, SoC re-derived from {self.stored_energy_kwh:.3f} kWh"
        )
        return clamp_percent(self.stored_energy_kwh / capacity_kwh * 100.0)

    def headroom(self, soc_percent: Percent, capacity_kwh: kWh, dt_hours: float) -> tuple[kW, kW]:
        """Possible charge and discharge power for one tick.

        Args:
            soc_percent: Current state of charge
            capacity_kwh: Current capacity
            dt_hours: Tick duration in hours

        Returns:
            Tuple of (possible charge power, possible discharge power), both >= 0
        """
        possible_charge = capacity_kwh * ((100.0 - soc_percent) / 100.0) / dt_hours
        possible_discharge = capacity_kwh * (soc_percent / 100.0) / dt_hours
        return (
            max(0.0, min(possible_charge, self.charge_power_kw)),
            max(0.0, min(possible_discharge, self.discharge_power_kw)),
        )

    def step(
        self,
        soc_percent: Percent,
        capacity_kwh: kWh,
        charge_limit_kw: kW,
        discharge_limit_kw: kW,
        dt_hours: float,
    ) -> BatteryResult:
        """Advance the battery by one tick.

        Args:
            soc_percent: Externally reported state of charge
            capacity_kwh: Externally reported capacity
            charge_limit_kw: Charge limit setpoint (signed)
            discharge_limit_kw: Discharge limit setpoint (signed)
            dt_hours: Tick duration in hours

        Returns:
            Realized state of charge and power vector
        """
        if dt_hours <= 0:
            raise ValueError("Tick duration must be positive")

        soc = self.reconcile_soc(soc_percent, capacity_kwh)
        possible_charge, possible_discharge = self.headroom(soc, capacity_kwh, dt_hours)

        actual = charge_limit_kw + discharge_limit_kw
        if actual > 0 and actual > possible_charge:
            actual = possible_charge
        elif actual < 0 and abs(actual) > possible_discharge:
            actual = -possible_discharge

        if capacity_kwh <= 0:
            soc = 0.0
        else:
            soc += actual / capacity_kwh * dt_hours * 100.0
        soc = clamp_percent(soc)

        # Potentials reported for the next tick
        next_charge, next_discharge = self.headroom(soc, capacity_kwh, dt_hours)

        self.stored_energy_kwh = soc * capacity_kwh / 100.0

        return BatteryResult(
            soc_percent=soc,
            actual_power_kw=actual,
            charge_potential_kw=next_charge,
            discharge_potential_kw=next_discharge,
        )

    def update(self, dynamics: Dynamics, dt_hours: float) -> BatteryResult:
        """Read this tick's dynamics and advance the battery."""
        limits = read_vector(dynamics, self.max_power_id, "battery max power", len(BatteryMaxPowerIndex))
        return self.step(
            soc_percent=read_number(dynamics, self.soc_id, "battery SoC"),
            capacity_kwh=read_number(dynamics, self.capacity_id, "battery capacity"),
            charge_limit_kw=limits[BatteryMaxPowerIndex.CHARGE_LIMIT],
            discharge_limit_kw=limits[BatteryMaxPowerIndex.DISCHARGE_LIMIT],
            dt_hours=dt_hours,
        )
