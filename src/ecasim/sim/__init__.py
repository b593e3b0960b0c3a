"""Simulation module for the ECASIM asset simulator.

This module provides the tick engine that turns time-of-day profiles and
externally supplied setpoints into per-asset power outputs and grid sensor
measurements, together with the profile table, topology resolution and the
per-experiment state store it relies on.
"""

from .connector import ConnectorResult, ConnectorState
from .engine import AssetEngine, EntityError, TickResult
from .profile import ProfileTable, load_profile_csv, select_season
from .replay import ReplayDocument, ReplayStep, load_replay_document, replay
from .sensor import GridSensorState, SensorResult
from .store import ExperimentState, ExperimentStore
from .topology import ResolvedTopology, TopologyError, TopologySnapshot, resolve_topology

__all__ = [
    "AssetEngine",
    "TickResult",
    "EntityError",
    "ConnectorState",
    "ConnectorResult",
    "GridSensorState",
    "SensorResult",
    "ExperimentState",
    "ExperimentStore",
    "ProfileTable",
    "load_profile_csv",
    "select_season",
    "ReplayDocument",
    "ReplayStep",
    "load_replay_document",
    "replay",
    "ResolvedTopology",
    "TopologyError",
    "TopologySnapshot",
    "resolve_topology",
]
