"""Tests for grid sensor measurements."""

import pytest
from ecasim.sim.sensor import GridSensorState, direction_factor
from ecasim.utils.enums import FlowDirection
from pydantic import ValidationError


def make_sensor(**kwargs) -> GridSensorState:
    fields = {
        "sensor_id": "sensor",
        "name_id": "s-name",
        "power_measurement_id": "s-meas",
        "cable_power_id": "cable-p",
        "power_flow_direction_id": "s-dir",
    }
    fields.update(kwargs)
    return GridSensorState(**fields)


class TestDirectionFactor:
    """Test the sign applied to the measured power."""

    def test_down_is_negative(self):
        """Test a downward flow flips the sign."""
        assert direction_factor(FlowDirection.DOWN) == -1.0
        assert direction_factor("DOWN") == -1.0

    def test_other_values_are_positive(self):
        """Test upward and missing directions keep the sign."""
        assert direction_factor("UP") == 1.0
        assert direction_factor(None) == 1.0


class TestGridSensorMeasurement:
    """Test sensor measurements."""

    def test_upward_flow(self):
        """Test the measurement averages the three cable phases."""
        result = make_sensor().measure({"cable-p": [3.0, 6.0, 9.0], "s-dir": "UP"})
        assert result.measurement == pytest.approx(6.0)
        assert result.name is None

    def test_downward_flow(self):
        """Test a downward flow reports a negative measurement."""
        result = make_sensor().measure({"cable-p": [3.0, 6.0, 9.0], "s-dir": "DOWN"})
        assert result.measurement == pytest.approx(-6.0)

    def test_missing_direction_defaults_to_up(self):
        """Test a missing direction dynamic leaves the sign positive."""
        result = make_sensor(power_flow_direction_id=None).measure({"cable-p": [1.0, 1.0, 1.0]})
        assert result.measurement == pytest.approx(1.0)

    def test_inactive_sensor_reports_zero(self):
        """Test a sensor classified inactive reports zero and its inactive name."""
        sensor = make_sensor(is_active=False, cable_power_id=None, cable_count=3)
        result = sensor.measure({})
        assert result.measurement == 0.0
        assert result.name == "Inactive"

    def test_inactive_name_from_dynamics(self):
        """Test a sensor named Inactive by the caller reports zero."""
        result = make_sensor().measure({"s-name": "Inactive", "cable-p": [3.0, 3.0, 3.0]})
        assert result.measurement == 0.0

    def test_missing_cable_power(self):
        """Test a missing cable power dynamic raises KeyError."""
        with pytest.raises(KeyError):
            make_sensor().measure({"s-dir": "UP"})

    def test_sensor_without_cable(self):
        """Test an active sensor without a cable cannot measure."""
        with pytest.raises(ValueError):
            make_sensor(cable_power_id=None).measure({})

    def test_sensor_is_immutable(self):
        """Test the classification cannot change after setup."""
        sensor = make_sensor()
        with pytest.raises(ValidationError):
            sensor.is_active = False
