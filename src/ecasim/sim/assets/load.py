"""Load asset implementation for the ECASIM simulation system.

Every connector carries a base load taken from the seasonal load profile and
scaled by a factor derived from the building the connector supplies (houses
scale it up, farms and stations switch it off).
"""

from pydantic import BaseModel, Field

from ecasim.sim.profile import ProfileRow
from ecasim.utils.enums import Season
from ecasim.utils.types import LOAD_COLUMN_PREFIX, kW


class LoadState(BaseModel):
    """Profile driven base load of a connector."""

    scale_factor: float = Field(default=1.0, ge=0.0, description="Multiplier applied to the load profile")

    def power(self, row: ProfileRow, season: Season) -> kW:
        """Load of this tick in kW."""
        return row.get(f"{LOAD_COLUMN_PREFIX}{season.column_suffix}", 0.0) * self.scale_factor
