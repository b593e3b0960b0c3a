"""Tests for the profile table and season selection."""

import pandas as pd
import pytest
from ecasim.sim.profile import ProfileTable, interpolate_rows, load_profile_csv, select_season
from ecasim.utils.enums import Season
from ecasim.utils.types import SUMMER_END_SECONDS, SUMMER_START_SECONDS


class TestProfileTableCreation:
    """Test ProfileTable construction and validation."""

    def test_from_rows(self):
        """Test creation from a mapping of rows."""
        table = ProfileTable.from_rows({0: {"LD-S": 1.0}, 60: {"LD-S": 2.0}})
        assert len(table) == 2
        assert list(table.keys) == [0, 60]
        assert table.columns == ["LD-S"]
        assert 60 in table
        assert 30 not in table

    def test_empty_table_rejected(self):
        """Test an empty profile is rejected."""
        with pytest.raises(ValueError):
            ProfileTable.from_rows({})

    def test_key_outside_day_rejected(self):
        """Test keys must lie within one day."""
        with pytest.raises(ValueError):
            ProfileTable.from_rows({86400: {"LD-S": 1.0}})

    def test_non_finite_values_stored_as_zero(self):
        """Test NaN, infinite and missing values are stored as zero."""
        table = ProfileTable.from_rows({0: {"LD-W": float("nan"), "PV-W": float("inf"), "EV": None, "LD-S": 1.5}})
        assert dict(table.row(0)) == {"LD-W": 0.0, "PV-W": 0.0, "EV": 0.0, "LD-S": 1.5}

    def test_from_dataframe_infinite_values(self):
        """Test infinite CSV values are stored as zero."""
        frame = pd.DataFrame({"time": [0], "LD-S": ["inf"], "LD-W": [-float("inf")]})
        table = ProfileTable.from_dataframe(frame)
        assert dict(table.row(0)) == {"LD-S": 0.0, "LD-W": 0.0}

    def test_rows_are_read_only(self):
        """Test stored rows cannot be mutated."""
        table = ProfileTable.from_rows({0: {"LD-S": 1.0}})
        with pytest.raises(TypeError):
            table.row(0)["LD-S"] = 5.0  # type: ignore[index]

    def test_from_dataframe_with_clock_times(self):
        """Test HH:MM and HH:MM:SS times are converted to seconds of day."""
        frame = pd.DataFrame({"time": ["00:00", "01:30", "02:00:30"], "LD-S": [1.0, 2.0, None]})
        table = ProfileTable.from_dataframe(frame)
        assert list(table.keys) == [0, 5400, 7230]
        assert table.row(7230)["LD-S"] == 0.0

    def test_from_dataframe_requires_time_column(self):
        """Test a frame without time column is rejected."""
        with pytest.raises(ValueError):
            ProfileTable.from_dataframe(pd.DataFrame({"LD-S": [1.0]}))


class TestProfileLookup:
    """Test profile lookups at, between and outside the known keys."""

    @pytest.fixture
    def table(self) -> ProfileTable:
        return ProfileTable.from_rows(
            {
                600: {"LD-S": 10.0, "EV-ID_Slot1": 1.0},
                1200: {"LD-S": 20.0, "EV-ID_Slot1": 2.0},
            }
        )

    def test_exact_key_returns_stored_row(self, table):
        """Test an exact key returns the stored row unchanged."""
        assert table.lookup(600)["LD-S"] == 10.0
        assert table.lookup(1200)["EV-ID_Slot1"] == 2.0

    def test_between_keys_interpolates(self, table):
        """Test a time between keys is linearly interpolated."""
        assert table.lookup(900)["LD-S"] == pytest.approx(15.0)
        assert table.lookup(1050)["LD-S"] == pytest.approx(17.5)

    def test_car_id_columns_not_interpolated(self, table):
        """Test car id columns take the lower row's value."""
        assert table.lookup(1199)["EV-ID_Slot1"] == 1.0

    def test_before_first_key_clamps(self, table):
        """Test a time before the first key returns the first row."""
        assert table.lookup(0)["LD-S"] == 10.0

    def test_after_last_key_clamps(self, table):
        """Test a time after the last key returns the last row."""
        assert table.lookup(86399)["LD-S"] == 20.0

    def test_single_row_table(self):
        """Test a single row table answers every lookup with that row."""
        table = ProfileTable.from_rows({3600: {"LD-W": 4.0}})
        assert table.lookup(0)["LD-W"] == 4.0
        assert table.lookup(7200)["LD-W"] == 4.0


class TestInterpolateRows:
    """Test row blending."""

    def test_fields_missing_in_upper_row_are_dropped(self):
        """Test only fields present in both rows are interpolated."""
        row = interpolate_rows({"a": 0.0, "b": 1.0}, {"a": 10.0}, 0.5)
        assert dict(row) == {"a": 5.0}


class TestSeasonSelection:
    """Test summer/winter selection from the start time."""

    def test_winter_at_year_start(self):
        """Test January is winter."""
        assert select_season(0) == Season.WINTER

    def test_summer_in_july(self):
        """Test July is summer."""
        assert select_season(16_000_000) == Season.SUMMER

    def test_boundaries_are_exclusive(self):
        """Test the boundary seconds themselves are winter."""
        assert select_season(SUMMER_START_SECONDS) == Season.WINTER
        assert select_season(SUMMER_START_SECONDS + 1) == Season.SUMMER
        assert select_season(SUMMER_END_SECONDS - 1) == Season.SUMMER
        assert select_season(SUMMER_END_SECONDS) == Season.WINTER


class TestProfileCsv:
    """Test loading profiles from CSV files."""

    def test_load_profile_csv(self, tmp_path):
        """Test a CSV with numeric times is loaded."""
        path = tmp_path / "profile.csv"
        path.write_text("time,LD-S,PV-S\n0,1.0,-2.0\n3600,3.0,\n")
        table = load_profile_csv(path)
        assert len(table) == 2
        assert table.lookup(1800)["LD-S"] == pytest.approx(2.0)
        assert table.row(3600)["PV-S"] == 0.0

    def test_missing_file(self, tmp_path):
        """Test a missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_profile_csv(tmp_path / "missing.csv")
