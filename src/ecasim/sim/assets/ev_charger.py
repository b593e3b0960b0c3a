"""EV charger asset implementation for the ECASIM simulation system.

This module provides the EVChargerState class that models a multi-slot EV
charger with a demand-shifting ledger. Demand that cannot be served because
the external max-power setpoint throttles the charger is recorded in the
ledger and caught up in later ticks when headroom allows.

Two variants exist:
- Unmanaged chargers take one scalar baseline demand per slot from the profile
  and keep the ledger on the charger itself.
- Managed stations have an externally reported car assignment; every bay
  tracks its car's charge and its own share of the ledger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ecasim.config.schema import EVStationConfig
from ecasim.sim.assets.base import AssetState, Dynamics, read_number
from ecasim.sim.profile import ProfileRow
from ecasim.utils.enums import AssetKind, ChargingStationPowerIndex
from ecasim.utils.types import (
    EMPTY_BAY_CAR_ID,
    EV_COLUMN,
    EV_SLOT_COLUMN_PREFIX,
    CarId,
    DynamicId,
    finite_or_zero,
    kW,
    kWh,
    safe_divide,
)

logger = logging.getLogger(__name__)


class CarSlot(BaseModel):
    """One charging bay of a managed station."""

    car_id: CarId = Field(default=EMPTY_BAY_CAR_ID, description="Car parked in the bay, -1 for an empty bay")
    charge_kwh: kWh = Field(default=0.0, ge=0.0, description="Energy currently in the car")
    charge_max_kwh: kWh = Field(default=0.0, ge=0.0, description="Capacity of the car")
    charge_power_max_kw: kW = Field(default=0.0, ge=0.0, description="Power limit of the bay for this car")
    shifted_energy: float = Field(default=0.0, description="This bay's share of the shifted-energy ledger")

    @model_validator(mode="after")
    def validate_charge(self) -> CarSlot:
        """Validate the charge does not exceed the car's capacity."""
        if self.charge_kwh > self.charge_max_kwh:
            raise ValueError("charge_kwh cannot exceed charge_max_kwh")
        return self

    @classmethod
    def for_car(cls, car_id: CarId, station: EVStationConfig) -> CarSlot:
        """Create a bay holding a newly arrived car."""
        slot = cls()
        slot.assign_car(car_id, station)
        return slot

    def assign_car(self, car_id: CarId, station: EVStationConfig) -> None:
        """Park a different car in the bay.

        The charge starts at the configured fraction of the new car's capacity
        and the bay's ledger starts empty.
        """
        if car_id != EMPTY_BAY_CAR_ID and not station.is_known_car(car_id):
            logger.warning(f"Unknown car id {car_id}, treating it as a car without capacity")
        stats = station.get_car_stats(car_id)
        self.car_id = car_id
        self.charge_max_kwh = stats.max_capacity_kwh
        self.charge_power_max_kw = stats.power_kw * station.power_limit_factor
        self.charge_kwh = stats.max_capacity_kwh * station.initial_charge_fraction
        self.shifted_energy = 0.0

    @property
    def is_full(self) -> bool:
        """Whether the car has reached its capacity (empty bays count as full)."""
        return self.charge_kwh >= self.charge_max_kwh

    @property
    def soc_percent(self) -> float:
        """Charge as percent of the car's capacity, 0 for empty bays."""
        return safe_divide(self.charge_kwh, self.charge_max_kwh) * 100.0


class CarAssignment(BaseModel):
    """Externally reported occupancy of the bays of one EV station."""

    slots: list[CarSlot] = Field(default_factory=list, description="Bays in slot order")
    connector_id: str | None = Field(default=None, description="Connector feeding the station")

    model_config = ConfigDict(validate_assignment=True)

    @classmethod
    def for_cars(
        cls, car_ids: list[CarId], station: EVStationConfig, connector_id: str | None = None
    ) -> CarAssignment:
        """Create an assignment with every bay freshly occupied."""
        return cls(slots=[CarSlot.for_car(car_id, station) for car_id in car_ids], connector_id=connector_id)

    @property
    def slot_count(self) -> int:
        """Number of bays."""
        return len(self.slots)

    @property
    def car_ids(self) -> list[CarId]:
        """Car ids in slot order."""
        return [slot.car_id for slot in self.slots]

    @property
    def shifted_energy(self) -> float:
        """Sum of the bay ledgers."""
        return sum(slot.shifted_energy for slot in self.slots)


@dataclass(frozen=True)
class Reconciliation:
    """Outcome of reconciling demand, ledger and setpoint."""

    new_power: kW
    actual: kW
    shifted_demand: kW
    shifted_energy: float


def reconcile_charging(demand: kW, base_power: kW, limit: kW, setpoint: kW, shifted_energy: float) -> Reconciliation:
    """Reconcile the charging demand with the external setpoint.

    Args:
        demand: Power the cars want this tick
        base_power: Committed power before catching up on the ledger
        limit: Maximum power of all slots together
        setpoint: External max-power setpoint
        shifted_energy: Ledger including this tick's demand

    Returns:
        Committed power, actual power, reported shifted demand and the ledger
    """
    new_power = base_power
    if shifted_energy > 0:
        # Catch up on shifted demand, bounded by the slot limits
        new_power = min(setpoint + shifted_energy, limit)

    # Never throttle below what the cars actually demand
    new_power = max(new_power, demand)

    if new_power > setpoint:
        actual = setpoint
    else:
        actual = new_power
        if shifted_energy < 0:
            # Repay previously under-delivered energy against the headroom
            actual = setpoint + shifted_energy
            shifted_energy = 0.0

    shifted_demand = min(new_power, shifted_energy + demand)
    return Reconciliation(
        new_power=new_power,
        actual=actual,
        shifted_demand=shifted_demand,
        shifted_energy=shifted_energy,
    )


@dataclass(frozen=True)
class EVChargeResult:
    """Outcome of one EV charger tick."""

    demand_kw: kW
    actual_kw: kW
    shifted_demand_kw: kW
    slot_soc_percent: list[float] | None = None

    @property
    def power_vector(self) -> list[float]:
        """Power output vector ``[demand, actual, shifted demand]``."""
        vector = [0.0, 0.0, 0.0]
        vector[ChargingStationPowerIndex.POWER_DEMAND] = self.demand_kw
        vector[ChargingStationPowerIndex.ACTUAL_POWER] = self.actual_kw
        vector[ChargingStationPowerIndex.SHIFTED_DEMAND] = self.shifted_demand_kw
        return vector


class EVChargerState(AssetState):
    """EV charging pole attached to a grid connector."""

    asset_kind: AssetKind = Field(default=AssetKind.EV_CHARGER, description="Kind of the asset")
    charging_slots: int = Field(default=1, ge=1, description="Number of charging slots")
    max_power_per_slot_kw: kW = Field(default=4.0, ge=0.0, description="Power limit per generic slot")
    shifted_energy: float = Field(default=0.0, description="Shifted-energy ledger of the charger")
    max_power_id: DynamicId = Field(..., min_length=1, description="Max-power setpoint dynamic")
    soc_id: DynamicId | None = Field(default=None, description="Dynamic receiving the per-slot car SoC")

    def step_unmanaged(self, row: ProfileRow, setpoint: kW) -> EVChargeResult:
        """Advance a generic charger whose demand comes from the profile.

        Args:
            row: Profile row of this tick
            setpoint: External max-power setpoint

        Returns:
            Demand, actual and shifted demand
        """
        baseline = finite_or_zero(row.get(EV_COLUMN, 0.0))
        demand = baseline * self.charging_slots
        limit = self.max_power_per_slot_kw * self.charging_slots

        self.shifted_energy += demand - setpoint
        outcome = reconcile_charging(demand, demand, limit, setpoint, self.shifted_energy)
        self.shifted_energy = outcome.shifted_energy

        return EVChargeResult(demand_kw=demand, actual_kw=outcome.actual, shifted_demand_kw=outcome.shifted_demand)

    def step_managed(
        self,
        row: ProfileRow,
        setpoint: kW,
        assignment: CarAssignment,
        station: EVStationConfig,
        dt_hours: float,
        reality_twin_mode: bool = False,
    ) -> EVChargeResult:
        """Advance a station whose bays are reported by the occupancy feed.

        Args:
            row: Profile row of this tick
            setpoint: External max-power setpoint
            assignment: Bays of the station, updated in place
            station: EV station configuration (car catalogue and factors)
            dt_hours: Tick duration in hours
            reality_twin_mode: Only the occupancy feed changes cars when set,
                otherwise the profile's slot car ids are applied

        Returns:
            Demand, actual, shifted demand and per-slot SoC
        """
        self.charging_slots = max(1, assignment.slot_count)

        slot_demands: list[kW] = []
        demand = 0.0
        ledgers = 0.0
        limit = 0.0
        for index, slot in enumerate(assignment.slots, start=1):
            if not reality_twin_mode:
                car_id = profile_car_id(row, index)
                if car_id is not None and car_id != slot.car_id:
                    slot.assign_car(car_id, station)

            slot_demand = station.get_car_stats(slot.car_id).power_kw * station.demand_power_factor
            if slot.is_full:
                slot_demand = 0.0
                slot.shifted_energy = 0.0
            slot.shifted_energy = finite_or_zero(slot.shifted_energy)

            slot_demands.append(slot_demand)
            demand += slot_demand
            ledgers += slot.shifted_energy
            limit += slot.charge_power_max_kw

        self.shifted_energy = ledgers + demand - setpoint
        outcome = reconcile_charging(demand, ledgers, limit, setpoint, self.shifted_energy)

        # The bay ledgers carry the shifted energy of a managed station
        self.shifted_energy = 0.0
        for slot, slot_demand in zip(assignment.slots, slot_demands, strict=True):
            charged = outcome.actual * safe_divide(slot_demand, demand)
            slot.shifted_energy += slot_demand - charged
            charge = max(0.0, slot.charge_kwh + charged * dt_hours)
            if charge >= slot.charge_max_kwh:
                charge = slot.charge_max_kwh
                slot.shifted_energy = 0.0
            slot.charge_kwh = charge

        return EVChargeResult(
            demand_kw=demand,
            actual_kw=outcome.actual,
            shifted_demand_kw=outcome.shifted_demand,
            slot_soc_percent=[slot.soc_percent for slot in assignment.slots],
        )

    def update(
        self,
        row: ProfileRow,
        dynamics: Dynamics,
        station: EVStationConfig,
        dt_hours: float,
        assignment: CarAssignment | None = None,
        reality_twin_mode: bool = False,
    ) -> EVChargeResult:
        """Read the max-power setpoint and advance the charger."""
        setpoint = read_number(dynamics, self.max_power_id, "charging station max power")
        if assignment is None:
            return self.step_unmanaged(row, setpoint)
        return self.step_managed(row, setpoint, assignment, station, dt_hours, reality_twin_mode)


def profile_car_id(row: ProfileRow, slot_number: int) -> CarId | None:
    """Car id the profile assigns to a bay, None when the profile has no such column."""
    value = row.get(f"{EV_SLOT_COLUMN_PREFIX}{slot_number}")
    if value is None:
        return None
    return int(round(finite_or_zero(value)))


__all__ = [
    "CarAssignment",
    "CarSlot",
    "EVChargeResult",
    "EVChargerState",
    "Reconciliation",
    "profile_car_id",
    "reconcile_charging",
]
