"""Experiment state ownership for the ECASIM simulation system.

Every running simulation instance (experiment) owns its connectors, sensors,
car assignments and tick phase counter. The ExperimentStore holds these states
and hands out one lock per experiment: ticks of one experiment are serialised
while different experiments run independently.
"""

import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from ecasim.config.schema import AssetSimConfig
from ecasim.sim.assets.ev_charger import CarAssignment, CarSlot
from ecasim.sim.connector import ConnectorState
from ecasim.sim.sensor import GridSensorState
from ecasim.sim.topology import ResolvedTopology
from ecasim.utils.logger import logger
from ecasim.utils.types import EMPTY_BAY_CAR_ID, MANAGED_STATION_SLOTS, BuildingId, CarId, ConnectorId, SensorId


@dataclass
class ExperimentState:
    """Mutable state of one experiment."""

    experiment_id: str
    connectors: dict[ConnectorId, ConnectorState] = field(default_factory=dict)
    sensors: dict[SensorId, GridSensorState] = field(default_factory=dict)
    car_assignments: dict[BuildingId, CarAssignment] = field(default_factory=dict)
    last_tick_time: int | None = None
    tick_phase: int = 0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)

    def advance_phase(self, simulation_at: int) -> int:
        """Advance the tick phase counter.

        A new simulation time starts phase 1; repeated calls for the same time
        count up. This fans one external timestamp into ordered sub-phases.

        Args:
            simulation_at: Simulation time of the call

        Returns:
            Phase of this call
        """
        if self.last_tick_time != simulation_at:
            self.last_tick_time = simulation_at
            self.tick_phase = 1
        else:
            self.tick_phase += 1
        return self.tick_phase

    def connector_for_building(self, building_id: BuildingId) -> ConnectorState | None:
        """Connector feeding a building, if any."""
        for connector in self.connectors.values():
            if connector.parent_building_id == building_id:
                return connector
        return None


class ExperimentStore:
    """Registry of experiment states."""

    def __init__(self, config: AssetSimConfig | None = None):
        """Initialize the store.

        Args:
            config: Simulator configuration (defaults to built-in defaults)
        """
        self.config = config or AssetSimConfig()
        self._experiments: dict[str, ExperimentState] = {}
        self._registry_lock = threading.Lock()

    def create(self, experiment_id: str, topology: ResolvedTopology | None = None) -> ExperimentState:
        """Create (or replace) the state of an experiment.

        Args:
            experiment_id: Experiment identifier
            topology: Resolved connectors and sensors

        Returns:
            The new experiment state
        """
        if not experiment_id or not experiment_id.strip():
            raise ValueError("Experiment ID cannot be empty")

        topology = topology or ResolvedTopology()
        state = ExperimentState(
            experiment_id=experiment_id,
            connectors=dict(topology.connectors),
            sensors=dict(topology.sensors),
        )
        with self._registry_lock:
            if experiment_id in self._experiments:
                logger.warning(f"Experiment {experiment_id} is set up again, previous state discarded")
            self._experiments[experiment_id] = state
        return state

    def get(self, experiment_id: str) -> ExperimentState:
        """Look up an experiment.

        Raises:
            KeyError: If the experiment was never set up or was removed
        """
        with self._registry_lock:
            try:
                return self._experiments[experiment_id]
            except KeyError:
                raise KeyError(f"Unknown experiment '{experiment_id}'") from None

    def remove(self, experiment_id: str) -> bool:
        """Drop an experiment's state, returning whether it existed."""
        with self._registry_lock:
            return self._experiments.pop(experiment_id, None) is not None

    def __contains__(self, experiment_id: object) -> bool:
        with self._registry_lock:
            return experiment_id in self._experiments

    def experiment_ids(self) -> list[str]:
        """Ids of all known experiments."""
        with self._registry_lock:
            return list(self._experiments)

    @contextmanager
    def locked(self, experiment_id: str) -> Iterator[ExperimentState]:
        """Hold an experiment's lock for the duration of the block."""
        state = self.get(experiment_id)
        with state.lock:
            yield state

    def update_car_assignment(
        self, experiment_id: str, building_id: BuildingId, car_ids: list[CarId]
    ) -> CarAssignment:
        """Apply a bay occupancy report of an EV station.

        The report lists the car id per bay (``-1`` for an empty bay). Bays
        whose car changed start with the configured initial charge and an empty
        ledger. A car leaving its bay takes its share of the shifted energy
        with it. The new assignment is built completely before it replaces the
        previous one, so a tick never sees a partially applied report.

        Args:
            experiment_id: Experiment the station belongs to
            building_id: Structure id of the EV station
            car_ids: Car id per bay

        Returns:
            The published assignment

        Raises:
            KeyError: If the experiment is unknown
            ValueError: If the report is malformed
        """
        if not isinstance(car_ids, list | tuple):
            raise ValueError("Car occupancy report must be a list")
        if len(car_ids) < MANAGED_STATION_SLOTS:
            raise ValueError(f"Car occupancy report needs {MANAGED_STATION_SLOTS} bays, got {len(car_ids)}")
        try:
            reported = [int(car_id) for car_id in car_ids[:MANAGED_STATION_SLOTS]]
        except (TypeError, ValueError) as e:
            raise ValueError(f"Car occupancy report holds a non-numeric car id: {car_ids!r}") from e

        station = self.config.structure_types.ev_station
        with self.locked(experiment_id) as state:
            connector = state.connector_for_building(building_id)
            connector_id = connector.connector_id if connector is not None else None
            charger = connector.ev_charger if connector is not None else None

            current = state.car_assignments.get(building_id)
            if current is None:
                assignment = CarAssignment.for_cars(reported, station, connector_id=connector_id)
                state.car_assignments[building_id] = assignment
                logger.info(f"Experiment {experiment_id}: station {building_id} occupied by {reported}")
                return assignment

            slots: list[CarSlot] = []
            released_energy = 0.0
            for slot, car_id in zip(current.slots, reported, strict=False):
                if slot.car_id == car_id:
                    slots.append(slot.model_copy())
                    continue
                if car_id == EMPTY_BAY_CAR_ID:
                    released_energy += slot.shifted_energy
                slots.append(CarSlot.for_car(car_id, station))

            assignment = CarAssignment(slots=slots, connector_id=connector_id)
            if charger is not None:
                charger.shifted_energy -= released_energy
                if assignment.shifted_energy == 0:
                    charger.shifted_energy = 0.0

            state.car_assignments[building_id] = assignment
            logger.info(f"Experiment {experiment_id}: station {building_id} occupied by {reported}")
            return assignment

    def get_car_assignment(self, experiment_id: str, building_id: BuildingId) -> CarAssignment | None:
        """Current car assignment of a station, if one was reported."""
        with self.locked(experiment_id) as state:
            return state.car_assignments.get(building_id)
