"""Base asset classes for the ECASIM simulation system.

This module provides the base class for all per-connector asset states and
the helpers used to read their externally supplied dynamics.
"""

from abc import ABC
from collections.abc import Mapping
from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ecasim.utils.enums import AssetKind
from ecasim.utils.types import DynamicId, finite_or_zero

Dynamics: TypeAlias = Mapping[DynamicId, Any]


class AssetState(BaseModel, ABC):
    """Base class for all assets attached to a grid connector.

    An asset state is created once when the topology is resolved and then
    carries whatever has to persist from one tick to the next.
    """

    asset_id: str = Field(..., min_length=1, description="Structure id of the asset")
    asset_kind: AssetKind = Field(..., description="Kind of the asset")
    output_id: DynamicId = Field(..., min_length=1, description="Dynamic the asset writes its power vector to")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("asset_id", "output_id")
    @classmethod
    def validate_identifier(cls, v: str) -> str:
        """Validate identifiers are not blank."""
        if not v or not v.strip():
            raise ValueError("Identifier cannot be empty")
        return v.strip()

    def __str__(self) -> str:
        """String representation of the asset."""
        return f"{self.asset_kind.value}:{self.asset_id}"


def read_dynamic(dynamics: Dynamics, dynamic_id: DynamicId, name: str) -> Any:
    """Read a required dynamic value.

    Args:
        dynamics: Values supplied for this tick
        dynamic_id: Dynamic to read
        name: Human readable name used in the error message

    Returns:
        The raw value

    Raises:
        KeyError: If the dynamic was not supplied
    """
    if dynamic_id not in dynamics or dynamics[dynamic_id] is None:
        raise KeyError(f"Missing {name} dynamic '{dynamic_id}'")
    return dynamics[dynamic_id]


def read_number(dynamics: Dynamics, dynamic_id: DynamicId, name: str) -> float:
    """Read a required scalar dynamic, NaN is read as zero."""
    return finite_or_zero(float(read_dynamic(dynamics, dynamic_id, name)))


def read_optional_number(dynamics: Dynamics, dynamic_id: DynamicId | None) -> float | None:
    """Read an optional scalar dynamic, returning None when it is absent."""
    if not dynamic_id or dynamics.get(dynamic_id) is None:
        return None
    return float(dynamics[dynamic_id])


def read_vector(dynamics: Dynamics, dynamic_id: DynamicId, name: str, length: int) -> list[float]:
    """Read a required vector dynamic of at least ``length`` entries."""
    value = read_dynamic(dynamics, dynamic_id, name)
    if not isinstance(value, list | tuple) or len(value) < length:
        raise ValueError(f"{name} dynamic '{dynamic_id}' must hold {length} values, got {value!r}")
    return [finite_or_zero(float(item)) for item in value[:length]]


__all__ = ["AssetState", "Dynamics", "read_dynamic", "read_number", "read_optional_number", "read_vector"]
