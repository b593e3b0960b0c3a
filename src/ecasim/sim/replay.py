"""Offline replay of an experiment for the ECASIM asset simulator.

A replay document is a topology snapshot extended with the input values the
surrounding platform would otherwise supply (battery capacities, setpoints,
cable powers) and optional EV bay occupancies. The replay drives an
AssetEngine through every sampling step, feeding each step's outputs back as
the next step's inputs.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import Field

from ecasim.sim.engine import AssetEngine, EntityError
from ecasim.sim.topology import TopologySnapshot
from ecasim.utils.logger import logger
from ecasim.utils.types import SECONDS_PER_DAY, CarId, DynamicId


class ReplayDocument(TopologySnapshot):
    """Topology snapshot with the replay's external inputs."""

    inputs: dict[DynamicId, Any] = Field(default_factory=dict, description="Values supplied on every tick")
    car_assignments: dict[str, list[CarId]] = Field(
        default_factory=dict, description="Car id per bay, keyed by EV station id"
    )

    @property
    def snapshot(self) -> TopologySnapshot:
        """The plain topology part of the document."""
        return TopologySnapshot(structures=self.structures, connections=self.connections, dynamics=self.dynamics)


def load_replay_document(path: str | Path) -> ReplayDocument:
    """Load a replay document from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not a YAML mapping
        pydantic.ValidationError: If the document is malformed
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Topology file not found: {path}")

    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Topology file {path} must contain a YAML mapping")

    document = ReplayDocument.model_validate(data)
    logger.info(
        f"Loaded topology {path}: {len(document.structures)} structures, "
        f"{len(document.connections)} connections, {len(document.dynamics)} dynamics"
    )
    return document


@dataclass
class ReplayStep:
    """Outputs of both phases of one sampling step."""

    simulation_at: int
    values: dict[DynamicId, Any] = field(default_factory=dict)
    errors: list[EntityError] = field(default_factory=list)


def replay(
    engine: AssetEngine,
    document: ReplayDocument,
    experiment_id: str,
    start_at: int = 0,
    duration_seconds: int = SECONDS_PER_DAY,
) -> Iterator[ReplayStep]:
    """Run an experiment through consecutive sampling steps.

    The experiment is set up from the document, bay occupancies are applied
    and every step calls the engine twice (assets, then sensors). The
    experiment is torn down when the iteration ends.

    Args:
        engine: Engine to drive
        document: Topology and inputs
        experiment_id: Identifier of the replayed experiment
        start_at: Simulation start as seconds since the start of the year
        duration_seconds: Simulated time span

    Yields:
        One ReplayStep per sampling step
    """
    if duration_seconds <= 0:
        raise ValueError("Replay duration must be positive")

    setup = engine.setup_experiment(experiment_id, document.snapshot)
    values: dict[DynamicId, Any] = {**document.inputs, **setup.values}
    for building_id, car_ids in document.car_assignments.items():
        engine.update_car_assignment(experiment_id, building_id, car_ids)

    step_seconds = engine.config.simulation.sampling_rate_seconds
    try:
        for simulation_at in range(0, duration_seconds, step_seconds):
            step = ReplayStep(simulation_at=simulation_at)
            for _ in range(2):
                result = engine.advance(experiment_id, start_at, simulation_at, values)
                values.update(result.values)
                step.values.update(result.values)
                step.errors.extend(result.errors)
            yield step
    finally:
        engine.teardown_experiment(experiment_id)
