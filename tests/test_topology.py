"""Tests for topology resolution."""

from ecasim.sim.topology import (
    DynamicEntity,
    StructureEntity,
    TopologySnapshot,
    resolve_connector,
    resolve_sensor,
    resolve_topology,
)


class TestTopologySnapshot:
    """Test snapshot lookups."""

    def test_dynamic_by_type(self, snapshot):
        """Test the first dynamic of a type is found."""
        dynamic_ids = snapshot.structures["bat"].dynamic_ids
        assert snapshot.dynamic_by_type(dynamic_ids, "BATTERY-SOC") == "bat-soc"
        assert snapshot.dynamic_by_type(dynamic_ids, "PV-SYSTEM-POWER") is None

    def test_structures_of_type_filters_experiments(self, snapshot):
        """Test structures of other experiments are excluded."""
        snapshot.structures["foreign"] = StructureEntity(type_id="POWERGRID-CONNECTOR", experiment_id="other")
        connectors = snapshot.structures_of_type("POWERGRID-CONNECTOR", "exp-1")
        assert sorted(connectors) == ["pgc-ev", "pgc-house", "pgc-pole"]
        assert "foreign" in snapshot.structures_of_type("POWERGRID-CONNECTOR", "other")


class TestConnectorResolution:
    """Test classification of connectors and their assets."""

    def test_small_house_with_pv_and_battery(self, snapshot, config):
        """Test a small house connector carries scaled load, PV and a battery."""
        connector = resolve_connector(snapshot, "pgc-house", config)
        assert connector.power_id == "pgc-house-p"
        assert connector.load.scale_factor == 2.0
        assert connector.pv is not None and connector.pv.max_power_id == "pv-max"
        assert connector.battery is not None and connector.battery.capacity_id == "bat-cap"
        assert connector.battery.charge_power_kw == 5.0
        assert connector.ev_charger is None
        assert connector.parent_building_id is None

    def test_generic_charging_pole(self, snapshot, config):
        """Test a charging pole outside a station uses the generic charger."""
        connector = resolve_connector(snapshot, "pgc-pole", config)
        assert connector.ev_charger is not None
        assert connector.ev_charger.charging_slots == 1
        assert connector.ev_charger.soc_id is None
        assert connector.load.scale_factor == 1.0

    def test_ev_station(self, snapshot, config):
        """Test an EV station connector has three slots and no base load."""
        connector = resolve_connector(snapshot, "pgc-ev", config)
        assert connector.parent_building_id == "station"
        assert connector.ev_charger.charging_slots == 3
        assert connector.ev_charger.soc_id == "ev-pole-soc"
        assert connector.load.scale_factor == 0.0

    def test_battery_station_capability(self, snapshot, config):
        """Test a battery station raises the battery capability."""
        snapshot.structures["house"].type_id = "BATTERY-STATION"
        connector = resolve_connector(snapshot, "pgc-house", config)
        assert connector.battery.charge_power_kw == 10.0
        assert connector.battery.discharge_power_kw == 10.0
        assert connector.load.scale_factor == 0.0

    def test_solar_farm_scaling(self, snapshot, config):
        """Test a solar farm scales the PV profile."""
        snapshot.structures["house"].type_id = "SOLAR-FARM"
        connector = resolve_connector(snapshot, "pgc-house", config)
        assert connector.pv.scale_factor == 8.0

    def test_wind_turbine(self, snapshot, config):
        """Test a wind turbine child is attached with the wind configuration."""
        snapshot.structures["wt"] = StructureEntity(type_id="WIND-TURBINE", dynamic_ids=["wt-p"])
        snapshot.dynamics["wt-p"] = DynamicEntity(type_id="WIND-TURBINE-POWER")
        snapshot.structures["pgc-pole"].child_ids.append("wt")
        connector = resolve_connector(snapshot, "pgc-pole", config)
        assert connector.wind is not None
        assert connector.wind.speed_column == "WS-1"
        assert connector.wind.max_power_id is None


class TestSensorResolution:
    """Test sensor activity classification."""

    def test_single_cable_sensor_is_active(self, snapshot):
        """Test a sensor on a node with one cable measures that cable."""
        sensor = resolve_sensor(snapshot, "sensor-ok")
        assert sensor.is_active
        assert sensor.node_id == "node-ok"
        assert sensor.cable_count == 1
        assert sensor.cable_power_id == "cable-1-p"
        assert sensor.power_flow_direction_id == "s-ok-dir"

    def test_three_cable_sensor_is_inactive(self, snapshot):
        """Test a node with more than two cables makes its sensor inactive."""
        sensor = resolve_sensor(snapshot, "sensor-busy")
        assert not sensor.is_active
        assert sensor.cable_count == 3

    def test_two_cable_sensor_is_active(self, snapshot):
        """Test two cables are still attributable."""
        snapshot.structures["node-busy"].child_ids.remove("cable-4")
        sensor = resolve_sensor(snapshot, "sensor-busy")
        assert sensor.is_active
        assert sensor.cable_power_id == "cable-2-p"

    def test_cables_are_counted_per_node(self, snapshot):
        """Test cables of different nodes do not add up."""
        snapshot.structures["node-busy"].child_ids.remove("cable-4")
        snapshot.structures["node-ok"].child_ids.append("sensor-busy")
        snapshot.structures["sensor-busy"].parent_ids.append("node-ok")
        sensor = resolve_sensor(snapshot, "sensor-busy")
        assert sensor.is_active
        assert sensor.cable_count == 2
        assert sensor.node_id == "node-ok"
        assert sensor.cable_power_id == "cable-1-p"

    def test_one_busy_node_makes_sensor_inactive(self, snapshot):
        """Test a sensor is inactive when any of its nodes has more than two cables."""
        snapshot.structures["sensor-ok"].parent_ids.append("node-busy")
        sensor = resolve_sensor(snapshot, "sensor-ok")
        assert not sensor.is_active
        assert sensor.cable_count == 3


class TestResolveTopology:
    """Test whole experiment resolution."""

    def test_resolves_all_entities(self, snapshot, config):
        """Test every connector and sensor is resolved."""
        resolved = resolve_topology(snapshot, "exp-1", config)
        assert sorted(resolved.connectors) == ["pgc-ev", "pgc-house", "pgc-pole"]
        assert sorted(resolved.sensors) == ["sensor-busy", "sensor-ok"]
        assert resolved.setup_values == {"s-busy-name": "Inactive"}
        assert resolved.errors == {}

    def test_unresolvable_connector_is_isolated(self, snapshot, config):
        """Test a connector without power dynamic is reported and left out."""
        snapshot.structures["pgc-pole"].dynamic_ids = []
        resolved = resolve_topology(snapshot, "exp-1", config)
        assert "pgc-pole" not in resolved.connectors
        assert "pgc-pole" in resolved.errors
        assert "pgc-house" in resolved.connectors

    def test_second_asset_of_a_kind_is_rejected(self, snapshot, config):
        """Test two PV systems on one connector are reported."""
        snapshot.structures["pv-2"] = StructureEntity(type_id="SOLAR-PANEL", dynamic_ids=["pv-p"])
        snapshot.structures["pgc-house"].child_ids.append("pv-2")
        resolved = resolve_topology(snapshot, "exp-1", config)
        assert "pgc-house" in resolved.errors

    def test_sensor_without_measurement_is_isolated(self, config):
        """Test a sensor missing its measurement dynamic is reported."""
        snapshot = TopologySnapshot(
            structures={"s": StructureEntity(type_id="GRID-SENSOR", dynamic_ids=["n"])},
            dynamics={"n": DynamicEntity(type_id="GRID-SENSOR-NAME")},
        )
        resolved = resolve_topology(snapshot, "exp-1", config)
        assert resolved.sensors == {}
        assert "s" in resolved.errors
