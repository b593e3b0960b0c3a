"""Configuration loaders for the ECASIM asset simulator.

This module provides configuration loading functionality using YAML files
with Pydantic validation, merged over the built-in defaults and overridden by
environment variables.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

import yaml

from ecasim.utils.logger import logger

from .schema import AssetSimConfig

MAIN_CONFIG_FILE = "asset-config.yaml"
LOCAL_CONFIG_FILE = "asset-config.local.yaml"

# Environment variable -> (path into the configuration, converter)
ENV_OVERRIDES: dict[str, tuple[tuple[str, ...], Any]] = {
    "BATTERY_CHARGE_POWER": (("battery_system", "charge_power_kw"), float),
    "BATTERY_DISCHARGE_POWER": (("battery_system", "discharge_power_kw"), float),
    "SOLAR_FARM_SCALE_FACTOR": (("structure_types", "solar_farm", "solar_system", "scale_factor"), float),
    "EV_STATION_CHARGING_SLOTS": (("structure_types", "ev_station", "ev_charger", "charging_slots"), int),
    "SMALL_HOUSE_LOAD_SCALE": (("structure_types", "small_house", "load", "scale_factor"), float),
    "HUGE_HOUSE_LOAD_SCALE": (("structure_types", "huge_house", "load", "scale_factor"), float),
    "BATTERY_STATION_CHARGE_POWER": (
        ("structure_types", "battery_station", "battery_system", "charge_power_kw"),
        float,
    ),
    "BATTERY_STATION_DISCHARGE_POWER": (
        ("structure_types", "battery_station", "battery_system", "discharge_power_kw"),
        float,
    ),
    "SAMPLING_RATE": (("simulation", "sampling_rate_seconds"), int),
    "REALITY_TWIN_MODE": (("simulation", "reality_twin_mode"), lambda v: v.lower() in ("true", "1", "yes", "on")),
    "HOOK": (("simulation", "hooks"), json.loads),
}


class ConfigLoader(ABC):
    """Abstract base class for configuration loaders."""

    @abstractmethod
    def load_config(self, config_path: str | Path) -> AssetSimConfig:
        """Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            FileNotFoundError: If the config file doesn't exist
            ValidationError: If the config validation fails
        """

    @abstractmethod
    def load_config_from_dict(self, config_dict: dict[str, Any]) -> AssetSimConfig:
        """Load configuration from a dictionary.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration

        Raises:
            ValidationError: If the config validation fails
        """


class YamlConfigLoader(ConfigLoader):
    """YAML configuration loader implementation."""

    def __init__(self, safe_load: bool = True):
        """Initialize YAML configuration loader.

        Args:
            safe_load: Whether to use safe YAML loading (default: True)
        """
        self.safe_load = safe_load

    def read_yaml(self, config_path: str | Path) -> dict[str, Any]:
        """Read a YAML mapping from disk.

        Args:
            config_path: Path to the YAML file

        Returns:
            Parsed mapping

        Raises:
            FileNotFoundError: If the file doesn't exist
            ValueError: If the path is not a file or the content is not a mapping
            yaml.YAMLError: If YAML parsing fails
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        if not config_path.is_file():
            raise ValueError(f"Configuration path is not a file: {config_path}")

        try:
            with open(config_path, encoding="utf-8") as f:
                if self.safe_load:
                    config_dict = yaml.safe_load(f)
                else:
                    config_dict = yaml.load(f, Loader=yaml.FullLoader)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Failed to parse YAML file {config_path}: {e}") from e

        if config_dict is None:
            raise ValueError(f"Configuration file {config_path} is empty")

        if not isinstance(config_dict, dict):
            raise ValueError(f"Configuration file {config_path} must contain a YAML mapping")

        return config_dict

    def load_config(self, config_path: str | Path) -> AssetSimConfig:
        """Load configuration from a YAML file, merged over the defaults.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration
        """
        return self.load_config_from_dict(self.read_yaml(config_path))

    def load_config_from_dict(self, config_dict: dict[str, Any]) -> AssetSimConfig:
        """Load configuration from a (possibly partial) dictionary.

        Missing properties keep their default values.

        Args:
            config_dict: Configuration data as dictionary

        Returns:
            Loaded and validated configuration
        """
        if not isinstance(config_dict, dict):
            raise ValueError("Configuration data must be a dictionary")

        return AssetSimConfig(**self.merge_with_defaults(config_dict))

    def merge_with_defaults(self, config_dict: dict[str, Any]) -> dict[str, Any]:
        """Merge configuration with default values.

        Args:
            config_dict: User-provided configuration dictionary

        Returns:
            Configuration dictionary merged with defaults
        """
        default_dict = AssetSimConfig().model_dump(mode="json")
        return self._deep_merge(default_dict, config_dict)

    def _deep_merge(self, base: dict[str, Any], update: dict[str, Any]) -> dict[str, Any]:
        """Deep merge two dictionaries, values from ``update`` take precedence."""
        result = base.copy()

        for key, value in update.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def apply_environment_overrides(
        self, config: AssetSimConfig, environ: dict[str, str] | None = None
    ) -> AssetSimConfig:
        """Apply environment variable overrides to a configuration.

        Args:
            config: Configuration to override
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            New configuration with the overrides applied

        Raises:
            ValueError: If an environment value cannot be converted
        """
        environ = dict(os.environ) if environ is None else environ
        config_dict = config.model_dump(mode="json")

        for env_name, (path, converter) in ENV_OVERRIDES.items():
            raw_value = environ.get(env_name)
            if raw_value is None or raw_value == "":
                continue
            try:
                value = converter(raw_value)
            except (ValueError, TypeError) as e:
                raise ValueError(f"Invalid value for {env_name}: {raw_value!r}") from e

            section = config_dict
            for key in path[:-1]:
                section = section.setdefault(key, {})
            section[path[-1]] = value
            logger.debug(f"Configuration override from {env_name}: {'.'.join(path)}={value!r}")

        return AssetSimConfig(**config_dict)

    def load_default_config(
        self, config_dir: str | Path = "config", environ: dict[str, str] | None = None
    ) -> AssetSimConfig:
        """Load the effective configuration from a configuration directory.

        Priority order (highest first): environment variables, the local YAML
        file, the main YAML file, built-in defaults. Only one of the two YAML
        files is read; the local one wins when present.

        Args:
            config_dir: Directory holding the YAML files
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            Effective configuration
        """
        config_dir = Path(config_dir)
        local_path = config_dir / LOCAL_CONFIG_FILE
        main_path = config_dir / MAIN_CONFIG_FILE

        if local_path.is_file():
            config = self.load_config(local_path)
            logger.info(f"Loaded local YAML configuration from: {local_path}")
        elif main_path.is_file():
            config = self.load_config(main_path)
            logger.info(f"Loaded YAML configuration from: {main_path}")
        else:
            config = AssetSimConfig()
            logger.info("No YAML configuration file found, using defaults")

        return self.apply_environment_overrides(config, environ)

    def save_config(self, config: AssetSimConfig, config_path: str | Path) -> None:
        """Save configuration to a YAML file.

        Args:
            config: Configuration to save
            config_path: Path to save the configuration file
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(config.model_dump(mode="json"), f, default_flow_style=False, sort_keys=False, indent=2)


def load_config_from_yaml(config_path: str | Path) -> AssetSimConfig:
    """Convenience function to load configuration from YAML file.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Loaded and validated configuration
    """
    loader = YamlConfigLoader()
    return loader.load_config(config_path)


def load_config_from_dict(config_dict: dict[str, Any]) -> AssetSimConfig:
    """Convenience function to load configuration from dictionary.

    Args:
        config_dict: Configuration data as dictionary

    Returns:
        Loaded and validated configuration
    """
    loader = YamlConfigLoader()
    return loader.load_config_from_dict(config_dict)


def load_default_config(config_dir: str | Path = "config") -> AssetSimConfig:
    """Convenience function to load the effective configuration of a directory."""
    return YamlConfigLoader().load_default_config(config_dir)
