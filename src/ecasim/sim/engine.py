"""Tick orchestration for the ECASIM asset simulator.

This module provides the AssetEngine that advances every experiment one tick
at a time. One external timestamp is processed in two ordered phases:

1. Asset update: resolve the profile row and season, then evaluate every
   connector (load, PV, wind, EV charger, battery) into a net power value.
2. Sensor update: measure every grid sensor on the power flow the caller
   computed from the phase 1 outputs.

Failures are isolated per connector and sensor; one broken entity is logged
and reported without hiding the outputs of the others. A failing connector
still emits the asset outputs it assembled before the failure.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ecasim.config.schema import AssetSimConfig
from ecasim.sim.profile import ProfileRow, ProfileTable, select_season
from ecasim.sim.store import ExperimentState, ExperimentStore
from ecasim.sim.topology import TopologySnapshot, resolve_topology
from ecasim.utils.enums import Season
from ecasim.utils.logger import logger
from ecasim.utils.types import BuildingId, CarId, DynamicId, seconds_of_day

ASSET_PHASE = 1
SENSOR_PHASE = 2


@dataclass(frozen=True)
class EntityError:
    """Failure of one connector or sensor during a tick."""

    entity_id: str
    phase: int
    message: str
    error_type: str


@dataclass
class TickResult:
    """Output batch of one engine call."""

    experiment_id: str
    simulation_at: int
    phase: int
    values: dict[DynamicId, Any] = field(default_factory=dict)
    errors: list[EntityError] = field(default_factory=list)
    season: Season | None = None

    @property
    def ok(self) -> bool:
        """Whether every entity was processed without error."""
        return not self.errors


class AssetEngine:
    """Simulation engine for the energy community assets.

    This class owns the profile table and the experiment store and provides:
    - Experiment setup from a topology snapshot and teardown
    - Tick advancement with phase fan-out (assets, then sensors)
    - The bay occupancy feed for managed EV stations
    """

    def __init__(
        self,
        profile: ProfileTable,
        config: AssetSimConfig | None = None,
        store: ExperimentStore | None = None,
    ):
        """Initialize the engine.

        Args:
            profile: Profile table shared by all experiments
            config: Simulator configuration (defaults to built-in defaults)
            store: Experiment store (a new one is created by default)
        """
        self.profile = profile
        self.config = config or (store.config if store is not None else AssetSimConfig())
        self.store = store or ExperimentStore(self.config)

        logger.info(
            f"AssetEngine initialized with {len(profile)} profile rows, "
            f"{self.config.simulation.sampling_rate_seconds}s ticks"
        )

    def setup_experiment(self, experiment_id: str, snapshot: TopologySnapshot) -> TickResult:
        """Resolve a topology snapshot and create the experiment's state.

        Args:
            experiment_id: Experiment identifier
            snapshot: Topology of the experiment

        Returns:
            Setup outputs at time 0 (names of inactive sensors) and the
            structures that could not be resolved
        """
        logger.info(f"Init experiment {experiment_id}")
        topology = resolve_topology(snapshot, experiment_id, self.config)
        self.store.create(experiment_id, topology)

        result = TickResult(experiment_id=experiment_id, simulation_at=0, phase=0)
        result.values.update(topology.setup_values)
        for entity_id, message in topology.errors.items():
            result.errors.append(EntityError(entity_id, 0, message, "TopologyError"))
        return result

    def teardown_experiment(self, experiment_id: str) -> bool:
        """Drop an experiment once its simulation has ended."""
        removed = self.store.remove(experiment_id)
        if removed:
            logger.info(f"Experiment {experiment_id} removed")
        return removed

    def has_experiment(self, experiment_id: str) -> bool:
        """Whether an experiment is set up."""
        return experiment_id in self.store

    def experiment_ids(self) -> list[str]:
        """Ids of all set up experiments."""
        return self.store.experiment_ids()

    def update_car_assignment(self, experiment_id: str, building_id: BuildingId, car_ids: list[CarId]) -> None:
        """Apply a bay occupancy report, see ExperimentStore.update_car_assignment."""
        self.store.update_car_assignment(experiment_id, building_id, car_ids)

    def resolve_tick(self, start_at: int, simulation_at: int) -> tuple[ProfileRow, Season]:
        """Profile row and season of a tick."""
        row = self.profile.lookup(seconds_of_day(start_at, simulation_at))
        season = select_season(
            start_at,
            self.config.simulation.summer_start_seconds,
            self.config.simulation.summer_end_seconds,
        )
        return row, season

    def advance(
        self,
        experiment_id: str,
        start_at: int,
        simulation_at: int,
        inputs: Mapping[DynamicId, Any] | None = None,
    ) -> TickResult:
        """Process one engine call for an experiment.

        The first call for a simulation time runs the asset phase, the second
        call for the same time runs the sensor phase. Further calls are no-ops.

        Args:
            experiment_id: Experiment identifier
            start_at: Simulation start as seconds since the start of the year
            simulation_at: Seconds since the simulation start
            inputs: Dynamic values supplied for this tick

        Returns:
            Output values and per-entity errors of this call

        Raises:
            KeyError: If the experiment was never set up
        """
        inputs = inputs or {}
        with self.store.locked(experiment_id) as state:
            phase = state.advance_phase(simulation_at)
            result = TickResult(experiment_id=experiment_id, simulation_at=simulation_at, phase=phase)
            hook = self._hook_for(phase)

            if phase == ASSET_PHASE:
                logger.debug(f"Processing hook {hook}: connector update (load, pv, wind, ev, battery)")
                self._update_connectors(state, start_at, simulation_at, inputs, result)
            elif phase == SENSOR_PHASE:
                logger.debug(f"Processing hook {hook}: grid sensor update")
                self._update_sensors(state, inputs, result)
            else:
                logger.debug(f"Experiment {experiment_id}: nothing to do in phase {phase} @ {simulation_at}")

        return result

    def _hook_for(self, phase: int) -> int | None:
        hooks = self.config.simulation.hooks
        if 1 <= phase <= len(hooks):
            return hooks[phase - 1]
        return None

    def _update_connectors(
        self,
        state: ExperimentState,
        start_at: int,
        simulation_at: int,
        inputs: Mapping[DynamicId, Any],
        result: TickResult,
    ) -> None:
        row, season = self.resolve_tick(start_at, simulation_at)
        result.season = season

        for connector_id, connector in state.connectors.items():
            assignment = None
            if connector.parent_building_id is not None:
                assignment = state.car_assignments.get(connector.parent_building_id)
            # Outputs assembled before a failure are kept
            try:
                connector.update(row, season, inputs, self.config, assignment=assignment, values=result.values)
            except Exception as e:
                self._record_failure(state, connector_id, result, e)

    def _update_sensors(
        self,
        state: ExperimentState,
        inputs: Mapping[DynamicId, Any],
        result: TickResult,
    ) -> None:
        for sensor_id, sensor in state.sensors.items():
            try:
                outcome = sensor.measure(inputs)
            except Exception as e:
                self._record_failure(state, sensor_id, result, e)
                continue
            if outcome.name is not None:
                result.values[sensor.name_id] = outcome.name
            result.values[sensor.power_measurement_id] = outcome.measurement

    def _record_failure(self, state: ExperimentState, entity_id: str, result: TickResult, error: Exception) -> None:
        logger.error(
            f"Experiment {state.experiment_id} @ {result.simulation_at} phase {result.phase}: "
            f"{entity_id} failed: {error}"
        )
        result.errors.append(
            EntityError(
                entity_id=entity_id,
                phase=result.phase,
                message=str(error),
                error_type=type(error).__name__,
            )
        )
