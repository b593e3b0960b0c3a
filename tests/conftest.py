"""Shared fixtures for the ECASIM test suite."""

import pytest
from ecasim.config.schema import AssetSimConfig, CarStats
from ecasim.sim.profile import ProfileTable
from ecasim.sim.topology import ConnectionEntity, DynamicEntity, StructureEntity, TopologySnapshot

WINTER_START = 0
SUMMER_START = 10_000_000


def build_snapshot() -> TopologySnapshot:
    """Small community used across the engine tests.

    - ``pgc-house``: small house connector with a PV system and a battery
    - ``pgc-pole``: connector with a generic (unmanaged) charging pole
    - ``pgc-ev``: EV station connector with a managed charging pole
    - ``sensor-ok``: sensor on a node with one cable
    - ``sensor-busy``: sensor on a node with three cables
    """
    structures = {
        "house": StructureEntity(type_id="SMALL-HOUSE", child_ids=["pgc-house"]),
        "pgc-house": StructureEntity(
            type_id="POWERGRID-CONNECTOR",
            dynamic_ids=["pgc-house-p"],
            parent_ids=["house"],
            child_ids=["pv", "bat"],
        ),
        "pv": StructureEntity(type_id="SOLAR-PANEL", dynamic_ids=["pv-p", "pv-max"]),
        "bat": StructureEntity(type_id="BATTERY-SYSTEM", dynamic_ids=["bat-p", "bat-max", "bat-soc", "bat-cap"]),
        "pgc-pole": StructureEntity(
            type_id="POWERGRID-CONNECTOR", dynamic_ids=["pgc-pole-p"], child_ids=["pole"]
        ),
        "pole": StructureEntity(type_id="CHARGING-POLE", dynamic_ids=["pole-p", "pole-max"]),
        "station": StructureEntity(type_id="EV-STATION", child_ids=["pgc-ev"]),
        "pgc-ev": StructureEntity(
            type_id="POWERGRID-CONNECTOR",
            dynamic_ids=["pgc-ev-p"],
            parent_ids=["station"],
            child_ids=["ev-pole"],
        ),
        "ev-pole": StructureEntity(type_id="CHARGING-POLE", dynamic_ids=["ev-pole-p", "ev-pole-max", "ev-pole-soc"]),
        "node-ok": StructureEntity(type_id="NODE", child_ids=["cable-1", "sensor-ok"]),
        "sensor-ok": StructureEntity(
            type_id="GRID-SENSOR",
            dynamic_ids=["s-ok-name", "s-ok-dir", "s-ok-meas"],
            parent_ids=["node-ok"],
        ),
        "node-busy": StructureEntity(type_id="NODE", child_ids=["cable-2", "cable-3", "cable-4", "sensor-busy"]),
        "sensor-busy": StructureEntity(
            type_id="GRID-SENSOR",
            dynamic_ids=["s-busy-name", "s-busy-meas"],
            parent_ids=["node-busy"],
        ),
    }
    connections = {
        f"cable-{index}": ConnectionEntity(type_id="CABLE-UNDERGROUND-SD", dynamic_ids=[f"cable-{index}-p"])
        for index in range(1, 5)
    }
    dynamic_types = {
        "pgc-house-p": "ACTIVE-POWER-3P",
        "pv-p": "PV-SYSTEM-POWER",
        "pv-max": "PV-SYSTEM-MAX-POWER",
        "bat-p": "BATTERY-POWER",
        "bat-max": "BATTERY-MAX-POWER",
        "bat-soc": "BATTERY-SOC",
        "bat-cap": "BATTERY-CAPACITY",
        "pgc-pole-p": "ACTIVE-POWER-3P",
        "pole-p": "CHGSTATION-POWER",
        "pole-max": "CHGSTATION-MAX-POWER",
        "pgc-ev-p": "ACTIVE-POWER-3P",
        "ev-pole-p": "CHGSTATION-POWER",
        "ev-pole-max": "CHGSTATION-MAX-POWER",
        "ev-pole-soc": "CHGSTATION-SOC",
        "s-ok-name": "GRID-SENSOR-NAME",
        "s-ok-dir": "GRID-SENSOR-DIRECTION",
        "s-ok-meas": "GRID-SENSOR-POWERMEASUREMENT",
        "s-busy-name": "GRID-SENSOR-NAME",
        "s-busy-meas": "GRID-SENSOR-POWERMEASUREMENT",
    }
    for index in range(1, 5):
        dynamic_types[f"cable-{index}-p"] = "CABLE-ACTIVE-POWER-3P"

    return TopologySnapshot(
        structures=structures,
        connections=connections,
        dynamics={dynamic_id: DynamicEntity(type_id=type_id) for dynamic_id, type_id in dynamic_types.items()},
    )


def base_inputs() -> dict:
    """Tick inputs matching :func:`build_snapshot`."""
    return {
        "pv-max": 100.0,
        "bat-max": [5.0, 0.0],
        "bat-soc": 50.0,
        "bat-cap": 10.0,
        "pole-max": 4.0,
        "ev-pole-max": 100.0,
        "s-ok-dir": "DOWN",
        "cable-1-p": [3.0, 6.0, 9.0],
    }


@pytest.fixture
def config() -> AssetSimConfig:
    """Default configuration with a small car catalogue."""
    config = AssetSimConfig()
    config.structure_types.ev_station.car_stats = {
        1: CarStats(max_capacity_kwh=40.0, power_kw=2.0),
        2: CarStats(max_capacity_kwh=60.0, power_kw=3.0),
    }
    return config


@pytest.fixture
def profile() -> ProfileTable:
    """Two row profile one hour apart."""
    return ProfileTable.from_rows(
        {
            0: {"LD-S": 1.0, "LD-W": 2.0, "PV-S": -3.0, "PV-W": -1.0, "EV": 3.0, "WS-1": 4.0},
            3600: {"LD-S": 3.0, "LD-W": 4.0, "PV-S": -5.0, "PV-W": -2.0, "EV": 1.0, "WS-1": 6.0},
        }
    )


@pytest.fixture
def snapshot() -> TopologySnapshot:
    """Topology snapshot of the test community."""
    return build_snapshot()
