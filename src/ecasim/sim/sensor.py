"""Grid sensor implementation for the ECASIM simulation system.

A grid sensor sits on a topology node and reports the average three phase
power of the first cable attached to that node, signed by the configured flow
direction. Sensors on nodes with more than two cables cannot attribute the
flow to a single cable; they are classified inactive once at setup and report
zero from then on.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ecasim.sim.assets.base import Dynamics, read_vector
from ecasim.utils.enums import FlowDirection
from ecasim.utils.types import INACTIVE_SENSOR_NAME, PHASE_COUNT, DynamicId, phase_average


@dataclass(frozen=True)
class SensorResult:
    """Outcome of one sensor tick."""

    measurement: float
    name: str | None = None


def direction_factor(direction: Any) -> float:
    """Sign applied to the measured power, -1 for a downward flow."""
    if direction == FlowDirection.DOWN or direction == FlowDirection.DOWN.value:
        return -1.0
    return 1.0


class GridSensorState(BaseModel):
    """Grid sensor classified from the topology."""

    sensor_id: str = Field(..., min_length=1, description="Structure id of the sensor")
    is_active: bool = Field(default=True, description="Fixed at setup from the node's cable count")
    node_id: str | None = Field(default=None, description="Topology node the sensor is attached to")
    cable_count: int = Field(default=0, ge=0, description="Largest cable count of the sensor's nodes")

    name_id: DynamicId = Field(..., min_length=1, description="Sensor name dynamic")
    power_measurement_id: DynamicId = Field(..., min_length=1, description="Measurement output dynamic")
    cable_power_id: DynamicId | None = Field(default=None, description="Three phase power of the measured cable")
    power_flow_direction_id: DynamicId | None = Field(default=None, description="Flow direction dynamic")
    power_limit_id: DynamicId | None = Field(default=None, description="Power limit dynamic")

    model_config = ConfigDict(frozen=True)

    def measure(self, dynamics: Dynamics) -> SensorResult:
        """Compute this tick's measurement.

        Args:
            dynamics: Values supplied for this tick

        Returns:
            Measurement, plus the inactive name for permanently inactive sensors

        Raises:
            KeyError: If an active sensor's cable power was not supplied
            ValueError: If an active sensor has no cable to measure
        """
        if not self.is_active:
            return SensorResult(measurement=0.0, name=INACTIVE_SENSOR_NAME)

        if dynamics.get(self.name_id) == INACTIVE_SENSOR_NAME:
            return SensorResult(measurement=0.0)

        if not self.cable_power_id:
            raise ValueError(f"Sensor {self.sensor_id} has no cable to measure")

        cable_power = read_vector(dynamics, self.cable_power_id, "cable power", PHASE_COUNT)
        direction = dynamics.get(self.power_flow_direction_id) if self.power_flow_direction_id else None
        return SensorResult(measurement=direction_factor(direction) * phase_average(cable_power))
