"""Configuration module for the ECASIM asset simulator.

This module provides configuration loading capabilities using Pydantic models
to read YAML configuration files and environment overrides.
"""

from .loaders import (
    ConfigLoader,
    YamlConfigLoader,
    load_config_from_dict,
    load_config_from_yaml,
    load_default_config,
)
from .schema import (
    AssetSimConfig,
    BatteryStationConfig,
    BatterySystemConfig,
    CarStats,
    EVChargerConfig,
    EVStationConfig,
    LoggingConfig,
    SimulationConfig,
    StructureTypesConfig,
    WindConfig,
)

__all__ = [
    # Configuration schema models
    "AssetSimConfig",
    "SimulationConfig",
    "BatterySystemConfig",
    "BatteryStationConfig",
    "EVChargerConfig",
    "EVStationConfig",
    "CarStats",
    "StructureTypesConfig",
    "WindConfig",
    "LoggingConfig",
    # Configuration loaders
    "ConfigLoader",
    "YamlConfigLoader",
    # Convenience functions
    "load_config_from_yaml",
    "load_config_from_dict",
    "load_default_config",
]
