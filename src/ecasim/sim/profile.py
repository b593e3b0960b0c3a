"""Profile table for the ECASIM asset simulator.

The profile table maps a second of the day to a row of named numeric values
(seasonal load and PV profiles, EV baseline demand, EV bay car ids and wind
speed bins). It is built once from a tabular source and never mutated; lookups
between known keys are linearly interpolated and lookups outside the known
range are clamped to the boundary rows.
"""

from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TypeAlias

import numpy as np
import pandas as pd  # type: ignore

from ecasim.utils.enums import Season
from ecasim.utils.logger import logger
from ecasim.utils.types import (
    EV_SLOT_COLUMN_PREFIX,
    SECONDS_PER_DAY,
    SUMMER_END_SECONDS,
    SUMMER_START_SECONDS,
    finite_or_zero,
)

ProfileRow: TypeAlias = Mapping[str, float]

TIME_COLUMN = "time"


def is_interpolatable(column: str) -> bool:
    """Car id columns hold identifiers, not quantities, and must not be blended."""
    return not column.startswith(EV_SLOT_COLUMN_PREFIX)


def select_season(
    start_at: int,
    summer_start: int = SUMMER_START_SECONDS,
    summer_end: int = SUMMER_END_SECONDS,
) -> Season:
    """Select the profile season for a simulation start time.

    Args:
        start_at: Simulation start as seconds since the start of the year
        summer_start: Exclusive lower boundary of summer
        summer_end: Exclusive upper boundary of summer

    Returns:
        Season.SUMMER strictly inside the window, Season.WINTER otherwise
    """
    if summer_start < start_at < summer_end:
        return Season.SUMMER
    return Season.WINTER


class ProfileTable:
    """Immutable second-of-day to profile row mapping.

    Missing, NaN and infinite values are stored as zero.
    """

    def __init__(self, rows: Mapping[int, Mapping[str, float | None]]):
        if not rows:
            raise ValueError("Profile table requires at least one row")

        frozen: dict[int, ProfileRow] = {}
        for key, row in rows.items():
            key = int(key)
            if key < 0 or key >= SECONDS_PER_DAY:
                raise ValueError(f"Profile time {key} is outside of the day")
            frozen[key] = MappingProxyType({str(name): finite_or_zero(value) for name, value in row.items()})

        self._rows: Mapping[int, ProfileRow] = MappingProxyType(frozen)
        self._keys = np.array(sorted(frozen), dtype=np.int64)
        self._keys.setflags(write=False)

    @classmethod
    def from_rows(cls, rows: Mapping[int, Mapping[str, float | None]]) -> "ProfileTable":
        """Create a profile table from a mapping of rows."""
        return cls(rows)

    @classmethod
    def from_dataframe(cls, frame: pd.DataFrame, time_column: str = TIME_COLUMN) -> "ProfileTable":
        """Create a profile table from a data frame.

        Args:
            frame: One row per profile time; ``time_column`` holds seconds of day
                or ``HH:MM[:SS]`` strings, all other columns are numeric fields
            time_column: Name of the time column

        Returns:
            Profile table with missing values treated as zero
        """
        if time_column not in frame.columns:
            raise ValueError(f"Profile data has no '{time_column}' column")

        seconds = _parse_time_column(frame[time_column])
        values = frame.drop(columns=[time_column]).apply(pd.to_numeric, errors="coerce").fillna(0.0)

        rows: dict[int, dict[str, float]] = {}
        for second, (_, row) in zip(seconds, values.iterrows(), strict=True):
            if second in rows:
                logger.warning(f"Duplicate profile time {second}, keeping the last row")
            rows[second] = {str(name): float(value) for name, value in row.items()}
        return cls(rows)

    @property
    def keys(self) -> np.ndarray:
        """Sorted profile times in seconds of day."""
        return self._keys

    @property
    def columns(self) -> list[str]:
        """Names of the profile fields."""
        return sorted({name for row in self._rows.values() for name in row})

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, second: object) -> bool:
        return second in self._rows

    def row(self, second: int) -> ProfileRow:
        """Exact row lookup."""
        return self._rows[second]

    def lookup(self, second: int) -> ProfileRow:
        """Resolve the profile row for a second of the day.

        Exact keys return the stored row unchanged. Times between two keys are
        linearly interpolated (car id columns take the lower row's value).
        Times outside the key range return the nearest boundary row.

        Args:
            second: Second of the day

        Returns:
            Profile row
        """
        second = int(second)
        if second in self._rows:
            return self._rows[second]

        first_key = int(self._keys[0])
        last_key = int(self._keys[-1])
        if second < first_key:
            return self._rows[first_key]
        if second > last_key:
            return self._rows[last_key]

        upper_index = int(np.searchsorted(self._keys, second, side="right"))
        lower_key = int(self._keys[upper_index - 1])
        upper_key = int(self._keys[upper_index])
        return interpolate_rows(
            self._rows[lower_key],
            self._rows[upper_key],
            (second - lower_key) / (upper_key - lower_key),
        )


def interpolate_rows(lower: ProfileRow, upper: ProfileRow, factor: float) -> ProfileRow:
    """Blend two profile rows.

    Fields present in both rows are interpolated, car id columns are copied
    from the lower row.
    """
    result: dict[str, float] = {}
    for name, lower_value in lower.items():
        if not is_interpolatable(name):
            result[name] = lower_value
        elif name in upper:
            result[name] = lower_value + factor * (upper[name] - lower_value)
    return MappingProxyType(result)


def _parse_time_column(column: pd.Series) -> list[int]:
    """Convert a time column into integer seconds of the day."""
    numeric = pd.to_numeric(column, errors="coerce")
    if not numeric.isna().any():
        return [int(value) % SECONDS_PER_DAY for value in numeric]

    # HH:MM is completed to HH:MM:SS
    texts = [text if text.count(":") == 2 else f"{text}:00" for text in column.astype(str).str.strip()]
    deltas = pd.to_timedelta(texts)
    return [int(delta.total_seconds()) % SECONDS_PER_DAY for delta in deltas]


def load_profile_csv(path: str | Path, time_column: str = TIME_COLUMN, **read_csv_kwargs) -> ProfileTable:
    """Load a profile table from a CSV file.

    Args:
        path: CSV file path
        time_column: Name of the time column
        **read_csv_kwargs: Passed through to ``pandas.read_csv``

    Returns:
        Profile table
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Profile file not found: {path}")

    frame = pd.read_csv(path, **read_csv_kwargs)
    table = ProfileTable.from_dataframe(frame, time_column=time_column)
    logger.info(f"Loaded {len(table)} profile rows from {path}")
    return table

