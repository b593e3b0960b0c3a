"""Tests for CLI main module.

This module tests the command line interface including:
- Command registration
- Offline replays
- Configuration display
- Error handling
"""

import json
from pathlib import Path

import pytest
from ecasim.cli.main import app, build_summary_table, create_cli_app, replay_command, version_command
from ecasim.sim.replay import ReplayStep
from typer.testing import CliRunner

REPO_ROOT = Path(__file__).parent.parent
SAMPLE_TOPOLOGY = REPO_ROOT / "data" / "sample-topology.yaml"
SAMPLE_PROFILE = REPO_ROOT / "data" / "sample-profile.csv"
SAMPLE_CONFIG = REPO_ROOT / "config" / "asset-config.yaml"

runner = CliRunner()


class TestCLIInterface:
    """Test CLI interface functionality."""

    def test_cli_app_creation(self):
        """Test CLI app creation."""
        assert create_cli_app() is app

    def test_commands_registered(self):
        """Test the replay, show-config and version commands are registered."""
        command_names = [cmd.name or cmd.callback.__name__ for cmd in app.registered_commands]
        assert "replay" in command_names
        assert "show-config" in command_names
        assert "version" in command_names


class TestVersionCommand:
    """Test the version command."""

    def test_version_command(self):
        """Test the version string."""
        assert version_command() == "ECASIM v0.1.0"

    def test_version_cli(self):
        """Test the version command through the CLI."""
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "ECASIM v0.1.0" in result.output


class TestShowConfigCommand:
    """Test the show-config command."""

    def test_show_config_file(self):
        """Test the effective configuration is printed as YAML."""
        result = runner.invoke(app, ["show-config", "--config", str(SAMPLE_CONFIG)])
        assert result.exit_code == 0
        assert "sampling_rate_seconds: 60" in result.output

    def test_missing_config_file(self, tmp_path):
        """Test a missing configuration file fails the command."""
        result = runner.invoke(app, ["show-config", "--config", str(tmp_path / "missing.yaml")])
        assert result.exit_code == 1


class TestReplayCommand:
    """Test the replay command."""

    def test_replay_command(self, tmp_path):
        """Test a replay writes one JSON entry per tick."""
        output = tmp_path / "out" / "values.json"
        steps = replay_command(
            topology_file=SAMPLE_TOPOLOGY,
            profile_file=SAMPLE_PROFILE,
            config_file=SAMPLE_CONFIG,
            duration=180,
            output_file=output,
        )
        assert len(steps) == 3

        payload = json.loads(output.read_text())
        assert [entry["simulation_at"] for entry in payload] == [0, 60, 120]
        assert payload[0]["values"]["sensor-1-measurement"] == pytest.approx(-1.5)
        assert payload[0]["errors"] == []

    def test_replay_cli(self, tmp_path):
        """Test the replay command through the CLI."""
        result = runner.invoke(
            app,
            [
                "replay",
                str(SAMPLE_TOPOLOGY),
                str(SAMPLE_PROFILE),
                "--config",
                str(SAMPLE_CONFIG),
                "--duration",
                "120",
                "--experiment",
                "cli-test",
            ],
        )
        assert result.exit_code == 0
        assert "Replay finished: 2 ticks" in result.output

    def test_replay_missing_topology(self, tmp_path):
        """Test a missing topology file fails the command."""
        result = runner.invoke(
            app,
            ["replay", str(tmp_path / "missing.yaml"), str(SAMPLE_PROFILE), "--config", str(SAMPLE_CONFIG)],
        )
        assert result.exit_code == 1


class TestSummaryTable:
    """Test the replay summary table."""

    def test_summary_rows(self):
        """Test one row per dynamic."""
        steps = [
            ReplayStep(simulation_at=0, values={"a": 1.0, "b": [2.0, 0.0], "name": "Inactive"}),
            ReplayStep(simulation_at=60, values={"a": 3.0, "b": [1.0, 0.0]}),
        ]
        table = build_summary_table(steps)
        assert table.row_count == 3
