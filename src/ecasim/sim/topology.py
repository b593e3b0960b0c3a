"""Topology resolution for the ECASIM simulation system.

The topology snapshot handed over at setup describes structures (buildings,
connectors, assets, nodes, sensors), connections (cables) and the dynamics
attached to them. This module resolves the snapshot once into typed
ConnectorState and GridSensorState records so that no structure type lookups
are needed at tick time.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, Field

from ecasim.config.schema import AssetSimConfig
from ecasim.sim.assets.battery import BatteryState
from ecasim.sim.assets.ev_charger import EVChargerState
from ecasim.sim.assets.load import LoadState
from ecasim.sim.assets.solar import PVSystemState
from ecasim.sim.assets.wind import WindTurbineState
from ecasim.sim.connector import ConnectorState
from ecasim.sim.sensor import GridSensorState
from ecasim.utils.enums import ConnectionType, DynamicType, StructureType
from ecasim.utils.logger import logger
from ecasim.utils.types import INACTIVE_SENSOR_NAME, DynamicId


class TopologyError(ValueError):
    """Raised when a structure cannot be resolved into a simulation record."""


class DynamicEntity(BaseModel):
    """A time series value of the topology."""

    type_id: str = Field(..., min_length=1, description="Dynamic type identifier")


class StructureEntity(BaseModel):
    """A structure (building, connector, asset, node, sensor) of the topology."""

    type_id: str = Field(..., min_length=1, description="Structure type identifier")
    experiment_id: str | None = Field(default=None, description="Experiment owning the structure")
    dynamic_ids: list[DynamicId] = Field(default_factory=list)
    child_ids: list[str] = Field(default_factory=list)
    parent_ids: list[str] = Field(default_factory=list)


class ConnectionEntity(BaseModel):
    """A connection (cable, transformer) of the topology."""

    type_id: str = Field(..., min_length=1, description="Connection type identifier")
    dynamic_ids: list[DynamicId] = Field(default_factory=list)


class TopologySnapshot(BaseModel):
    """Structures, connections and dynamics of one experiment at setup time."""

    structures: dict[str, StructureEntity] = Field(default_factory=dict)
    connections: dict[str, ConnectionEntity] = Field(default_factory=dict)
    dynamics: dict[DynamicId, DynamicEntity] = Field(default_factory=dict)

    def dynamic_by_type(self, dynamic_ids: Iterable[DynamicId], type_id: str) -> DynamicId | None:
        """First dynamic of the given type among ``dynamic_ids``."""
        for dynamic_id in dynamic_ids:
            dynamic = self.dynamics.get(dynamic_id)
            if dynamic is not None and dynamic.type_id == type_id:
                return dynamic_id
        return None

    def structures_of_type(self, type_id: str, experiment_id: str | None = None) -> list[str]:
        """Ids of the structures of a type, optionally restricted to an experiment."""
        return [
            structure_id
            for structure_id, entity in self.structures.items()
            if entity.type_id == type_id
            and (experiment_id is None or entity.experiment_id in (None, experiment_id))
        ]


@dataclass
class ResolvedTopology:
    """Typed simulation records of one experiment."""

    connectors: dict[str, ConnectorState] = field(default_factory=dict)
    sensors: dict[str, GridSensorState] = field(default_factory=dict)
    setup_values: dict[DynamicId, Any] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)


def _required(dynamic_id: DynamicId | None, what: str, owner: str) -> DynamicId:
    if not dynamic_id:
        raise TopologyError(f"{owner} has no {what} dynamic")
    return dynamic_id


def resolve_connector(
    snapshot: TopologySnapshot, connector_id: str, config: AssetSimConfig
) -> ConnectorState:
    """Resolve one grid connector and its attached assets.

    Args:
        snapshot: Topology snapshot
        connector_id: Structure id of the connector
        config: Simulator configuration

    Returns:
        Connector record

    Raises:
        TopologyError: If a required dynamic is missing
    """
    entity = snapshot.structures[connector_id]
    power_id = _required(
        snapshot.dynamic_by_type(entity.dynamic_ids, DynamicType.ACTIVE_POWER.value),
        "active power",
        f"Connector {connector_id}",
    )

    structures = config.structure_types
    load_scale = 1.0
    solar_scale = 1.0
    charging_slots = config.ev_charger.charging_slots
    charge_power = config.battery_system.charge_power_kw
    discharge_power = config.battery_system.discharge_power_kw
    parent_building_id = None

    # Building classification from the parents
    for parent_id in entity.parent_ids:
        parent = snapshot.structures.get(parent_id)
        if parent is None:
            continue
        match parent.type_id:
            case StructureType.SOLAR_FARM.value:
                solar_scale = structures.solar_farm.solar_system.scale_factor
                load_scale = structures.solar_farm.load.scale_factor
            case StructureType.EV_STATION.value:
                charging_slots = structures.ev_station.ev_charger.charging_slots
                load_scale = structures.ev_station.load.scale_factor
                parent_building_id = parent_id
            case StructureType.BATTERY_STATION.value:
                charge_power = structures.battery_station.battery_system.charge_power_kw
                discharge_power = structures.battery_station.battery_system.discharge_power_kw
                load_scale = structures.battery_station.load.scale_factor
            case StructureType.SMALL_HOUSE.value:
                load_scale = structures.small_house.load.scale_factor
            case StructureType.HUGE_HOUSE.value:
                load_scale = structures.huge_house.load.scale_factor

    connector = ConnectorState(
        connector_id=connector_id,
        power_id=power_id,
        parent_building_id=parent_building_id,
        load=LoadState(scale_factor=load_scale),
    )

    # Attached assets from the children
    for child_id in entity.child_ids:
        child = snapshot.structures.get(child_id)
        if child is None or not child.dynamic_ids:
            continue
        owner = f"{child.type_id} {child_id}"
        match child.type_id:
            case StructureType.SOLAR_PANEL.value:
                _ensure_single(connector.pv, owner)
                connector.pv = PVSystemState(
                    asset_id=child_id,
                    output_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.PV_SYSTEM_POWER.value),
                        "PV power",
                        owner,
                    ),
                    max_power_id=snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.PV_SYSTEM_MAX_POWER.value),
                    scale_factor=solar_scale,
                )
            case StructureType.WIND_TURBINE.value:
                _ensure_single(connector.wind, owner)
                wind = config.wind
                connector.wind = WindTurbineState(
                    asset_id=child_id,
                    output_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.WIND_TURBINE_POWER.value),
                        "wind power",
                        owner,
                    ),
                    max_power_id=snapshot.dynamic_by_type(
                        child.dynamic_ids, DynamicType.WIND_TURBINE_MAX_POWER.value
                    ),
                    speed_bin=wind.speed_bin,
                    scale_factor=wind.scale_factor,
                    conversion_factor_kw_per_ms=wind.conversion_factor_kw_per_ms,
                    min_wind_speed_ms=wind.min_wind_speed_ms,
                    max_wind_speed_ms=wind.max_wind_speed_ms,
                )
            case StructureType.CHARGING_POLE.value:
                _ensure_single(connector.ev_charger, owner)
                connector.ev_charger = EVChargerState(
                    asset_id=child_id,
                    output_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.CHGSTATION_POWER.value),
                        "charging station power",
                        owner,
                    ),
                    max_power_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.CHGSTATION_MAX_POWER.value),
                        "charging station max power",
                        owner,
                    ),
                    soc_id=snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.CHGSTATION_SOC.value),
                    charging_slots=charging_slots,
                    max_power_per_slot_kw=config.ev_charger.max_power_per_slot_kw,
                )
            case StructureType.BATTERY_SYSTEM.value:
                _ensure_single(connector.battery, owner)
                connector.battery = BatteryState(
                    asset_id=child_id,
                    output_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.BATTERY_POWER.value),
                        "battery power",
                        owner,
                    ),
                    max_power_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.BATTERY_MAX_POWER.value),
                        "battery max power",
                        owner,
                    ),
                    soc_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.BATTERY_SOC.value),
                        "battery SoC",
                        owner,
                    ),
                    capacity_id=_required(
                        snapshot.dynamic_by_type(child.dynamic_ids, DynamicType.BATTERY_CAPACITY.value),
                        "battery capacity",
                        owner,
                    ),
                    charge_power_kw=charge_power,
                    discharge_power_kw=discharge_power,
                )

    return connector


def _ensure_single(existing: Any, owner: str) -> None:
    if existing is not None:
        raise TopologyError(f"{owner} is a second asset of the same kind on one connector")


def resolve_sensor(snapshot: TopologySnapshot, sensor_id: str) -> GridSensorState:
    """Resolve one grid sensor and classify its activity.

    The first cable attached to the sensor's node provides the measured power.
    A node with more than two cables makes the sensor permanently inactive.

    Args:
        snapshot: Topology snapshot
        sensor_id: Structure id of the sensor

    Returns:
        Sensor record

    Raises:
        TopologyError: If the sensor has no name or measurement dynamic
    """
    entity = snapshot.structures[sensor_id]
    owner = f"Sensor {sensor_id}"
    name_id = _required(
        snapshot.dynamic_by_type(entity.dynamic_ids, DynamicType.GRID_SENSOR_NAME.value), "name", owner
    )
    measurement_id = _required(
        snapshot.dynamic_by_type(entity.dynamic_ids, DynamicType.GRID_SENSOR_POWERMEASUREMENT.value),
        "power measurement",
        owner,
    )

    node_id = None
    cable_count = 0
    cable_power_id = None
    is_active = True
    for parent_id in entity.parent_ids:
        parent = snapshot.structures.get(parent_id)
        if parent is None or parent.type_id != StructureType.NODE.value:
            continue
        node_id = parent_id
        # Cables are counted per node; the last node's first cable is measured
        node_cables = 0
        for child_id in parent.child_ids:
            connection = snapshot.connections.get(child_id)
            if connection is None or connection.type_id != ConnectionType.CABLE.value:
                continue
            node_cables += 1
            if node_cables == 1:
                cable_power_id = snapshot.dynamic_by_type(connection.dynamic_ids, DynamicType.CABLE_POWER.value)
        cable_count = max(cable_count, node_cables)
        if node_cables > 2:
            is_active = False
            logger.error(f"More than 2 cables connected to the node {parent_id}")
            logger.info(f"Sensor {name_id} set to inactive")

    return GridSensorState(
        sensor_id=sensor_id,
        is_active=is_active,
        node_id=node_id,
        cable_count=cable_count,
        name_id=name_id,
        power_measurement_id=measurement_id,
        cable_power_id=cable_power_id,
        power_flow_direction_id=snapshot.dynamic_by_type(
            entity.dynamic_ids, DynamicType.GRID_SENSOR_DIRECTION.value
        ),
        power_limit_id=snapshot.dynamic_by_type(entity.dynamic_ids, DynamicType.GRID_SENSOR_POWERLIMIT.value),
    )


def resolve_topology(snapshot: TopologySnapshot, experiment_id: str, config: AssetSimConfig) -> ResolvedTopology:
    """Resolve all connectors and sensors of an experiment.

    Structures that cannot be resolved are logged and left out; they produce
    no outputs but do not prevent the rest of the experiment from running.

    Args:
        snapshot: Topology snapshot
        experiment_id: Experiment to resolve
        config: Simulator configuration

    Returns:
        Connector and sensor records, setup outputs and per-structure errors
    """
    resolved = ResolvedTopology()

    for connector_id in snapshot.structures_of_type(StructureType.POWER_GRID_CONNECTOR.value, experiment_id):
        try:
            resolved.connectors[connector_id] = resolve_connector(snapshot, connector_id, config)
        except ValueError as e:
            logger.error(f"Experiment {experiment_id}: connector {connector_id} left inert: {e}")
            resolved.errors[connector_id] = str(e)

    for sensor_id in snapshot.structures_of_type(StructureType.GRID_SENSOR.value, experiment_id):
        try:
            sensor = resolve_sensor(snapshot, sensor_id)
        except ValueError as e:
            logger.error(f"Experiment {experiment_id}: sensor {sensor_id} left inert: {e}")
            resolved.errors[sensor_id] = str(e)
            continue
        resolved.sensors[sensor_id] = sensor
        if not sensor.is_active:
            resolved.setup_values[sensor.name_id] = INACTIVE_SENSOR_NAME

    logger.info(
        f"Experiment {experiment_id}: resolved {len(resolved.connectors)} connectors "
        f"and {len(resolved.sensors)} sensors"
    )
    return resolved
