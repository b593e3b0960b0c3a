"""Main CLI interface for the ECASIM asset simulator.

This module provides the command-line interface using the Typer framework.

Usage:
    ecasim replay topology.yaml profile.csv --duration 3600
    ecasim show-config --config config/asset-config.yaml
    ecasim version
"""

import json
from pathlib import Path
from typing import Any

import typer
import yaml
from rich.console import Console
from rich.table import Table

from ecasim.config.loaders import YamlConfigLoader
from ecasim.config.schema import AssetSimConfig
from ecasim.sim.engine import AssetEngine
from ecasim.sim.profile import load_profile_csv
from ecasim.sim.replay import ReplayStep, load_replay_document, replay
from ecasim.utils.logger import configure_logging, logger
from ecasim.utils.types import SECONDS_PER_DAY

# Create console for rich output
console = Console()

# Create main Typer app
app = typer.Typer(
    name="ecasim",
    help="ECASIM - Energy Community Asset Simulator",
    add_completion=False,
    rich_markup_mode="rich",
)


def create_cli_app() -> typer.Typer:
    """Create and configure the CLI application.

    Returns:
        Configured Typer application
    """
    return app


@app.command("replay")
def replay_cmd(
    topology_file: Path = typer.Argument(..., help="Topology YAML with inputs and bay occupancies"),
    profile_file: Path = typer.Argument(..., help="Profile CSV with a 'time' column"),
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
    start_at: int = typer.Option(0, "--start-at", "-s", help="Simulation start in seconds of the year"),
    duration: int = typer.Option(SECONDS_PER_DAY, "--duration", "-d", help="Simulated time span in seconds"),
    experiment_id: str = typer.Option("replay", "--experiment", "-e", help="Experiment identifier"),
    output_file: Path | None = typer.Option(None, "--output", "-o", help="Write per-tick values as JSON"),
) -> None:
    """Replay a profile day against a topology.

    Sets up an experiment, advances every sampling step through the asset and
    sensor phases and summarises the outputs.
    """
    try:
        steps = replay_command(
            topology_file=topology_file,
            profile_file=profile_file,
            config_file=config_file,
            start_at=start_at,
            duration=duration,
            experiment_id=experiment_id,
            output_file=output_file,
        )
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    error_count = sum(len(step.errors) for step in steps)
    if error_count:
        console.print(f"[bold yellow]Replay finished with {error_count} entity errors[/bold yellow]")
    else:
        console.print(f"[bold green]Replay finished: {len(steps)} ticks[/bold green]")


def replay_command(
    topology_file: Path,
    profile_file: Path,
    config_file: Path | None = None,
    start_at: int = 0,
    duration: int = SECONDS_PER_DAY,
    experiment_id: str = "replay",
    output_file: Path | None = None,
) -> list[ReplayStep]:
    """Execute the replay command.

    Args:
        topology_file: Topology YAML path
        profile_file: Profile CSV path
        config_file: Optional configuration file path
        start_at: Simulation start in seconds of the year
        duration: Simulated time span in seconds
        experiment_id: Experiment identifier
        output_file: Optional JSON output path

    Returns:
        Replayed steps

    Raises:
        FileNotFoundError: If an input file is missing
        ValueError: If an input is invalid
    """
    config = load_cli_config(config_file)
    configure_logging(config.logging)

    document = load_replay_document(topology_file)
    profile = load_profile_csv(profile_file)
    engine = AssetEngine(profile, config=config)

    console.print(f"[bold blue]Replaying experiment:[/bold blue] {experiment_id}")
    console.print(f"[dim]Start {start_at}s, duration {duration}s, step {config.simulation.sampling_rate_seconds}s[/dim]")

    steps = list(replay(engine, document, experiment_id, start_at=start_at, duration_seconds=duration))
    console.print(build_summary_table(steps))

    if output_file is not None:
        write_steps_json(steps, output_file)
        console.print(f"[dim]Values written to {output_file}[/dim]")

    return steps


def build_summary_table(steps: list[ReplayStep]) -> Table:
    """Summarise replayed values per dynamic.

    Numeric values are summarised by minimum, maximum and final value; vectors
    by their first component.
    """
    table = Table(title="Replay Summary")
    table.add_column("Dynamic", style="cyan")
    table.add_column("Min", style="green", justify="right")
    table.add_column("Max", style="green", justify="right")
    table.add_column("Last", style="white", justify="right")

    series: dict[str, list[Any]] = {}
    for step in steps:
        for dynamic_id, value in step.values.items():
            series.setdefault(dynamic_id, []).append(value)

    for dynamic_id in sorted(series):
        numbers = [_headline(value) for value in series[dynamic_id]]
        numbers = [number for number in numbers if number is not None]
        if not numbers:
            table.add_row(dynamic_id, "-", "-", str(series[dynamic_id][-1]))
            continue
        table.add_row(dynamic_id, f"{min(numbers):.3f}", f"{max(numbers):.3f}", f"{numbers[-1]:.3f}")

    return table


def _headline(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, list | tuple) and value and isinstance(value[0], int | float):
        return float(value[0])
    return None


def write_steps_json(steps: list[ReplayStep], output_file: Path) -> None:
    """Write the replayed values and errors as JSON."""
    output_file.parent.mkdir(parents=True, exist_ok=True)
    payload = [
        {
            "simulation_at": step.simulation_at,
            "values": step.values,
            "errors": [
                {"entity_id": error.entity_id, "phase": error.phase, "message": error.message}
                for error in step.errors
            ],
        }
        for step in steps
    ]
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


@app.command("show-config")
def show_config(
    config_file: Path | None = typer.Option(None, "--config", "-c", help="Configuration file path"),
) -> None:
    """Print the effective configuration as YAML."""
    try:
        config = load_cli_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[bold red]Error: {e}[/bold red]")
        raise typer.Exit(code=1) from e

    typer.echo(yaml.safe_dump(config.model_dump(mode="json"), default_flow_style=False, sort_keys=False))


@app.command()
def version() -> str:
    """Show ECASIM version information.

    Returns:
        Version string
    """
    return version_command()


def version_command() -> str:
    """Execute version command.

    Returns:
        Version string
    """
    from ecasim import __version__

    version_info = f"ECASIM v{__version__}"
    console.print(f"[bold cyan]{version_info}[/bold cyan]")
    console.print("[dim]Energy Community Asset Simulator[/dim]")
    return version_info


def load_cli_config(config_file: Path | None = None) -> AssetSimConfig:
    """Load the CLI configuration.

    Args:
        config_file: Configuration file path; without one the ``config``
            directory and environment overrides are used

    Returns:
        Loaded configuration

    Raises:
        FileNotFoundError: If the config file is not found
    """
    loader = YamlConfigLoader()
    if config_file is None:
        return loader.load_default_config()

    logger.debug(f"Loading configuration from {config_file}")
    return loader.apply_environment_overrides(loader.load_config(config_file))


# Main entry point for console script
def main() -> None:
    """Main entry point for the CLI application."""
    app()


if __name__ == "__main__":
    main()
