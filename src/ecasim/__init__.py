"""ECASIM - Energy Community Asset Simulator."""

from .sim import AssetEngine, ExperimentStore, ProfileTable, TickResult, TopologySnapshot

__version__ = "0.1.0"
__description__ = "Energy Community Asset Simulator"

__all__ = [
    "AssetEngine",
    "ExperimentStore",
    "ProfileTable",
    "TickResult",
    "TopologySnapshot",
]
