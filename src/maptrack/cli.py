"""Command-line interface for maptrack.

Provides CLI commands for logging running and cycling activities at map
coordinates, listing and selecting them, rendering the activity map, and
resetting stored data.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, NoReturn

import click

from maptrack import __version__
from maptrack.config import DEFAULT_CONFIG_PATH, load_config
from maptrack.errors import ActivityNotFoundError, ValidationError
from maptrack.lib.logging import setup_logging

if TYPE_CHECKING:
    from maptrack.config import Config
    from maptrack.services.tracker import ActivityTracker


class JSONOutput:
    """Helper for JSON output formatting."""

    def __init__(self, enabled: bool = False) -> None:
        self.enabled = enabled
        self._data: dict[str, Any] = {}

    def set(self, key: str, value: Any) -> None:
        """Set a value in the output."""
        self._data[key] = value

    def update(self, data: dict[str, Any]) -> None:
        """Update with multiple values."""
        self._data.update(data)

    def output(self) -> None:
        """Print JSON output if enabled."""
        if self.enabled:
            click.echo(json.dumps(self._data, indent=2, default=str, ensure_ascii=False))


class Context:
    """CLI context holding shared configuration and state."""

    def __init__(self) -> None:
        self.config: Config | None = None
        self.verbose: int = 0
        self.quiet: bool = False
        self.json_output: bool = False
        self.output: JSONOutput = JSONOutput()

    def log(self, message: str, level: int = 0) -> None:
        """Log a message if verbosity allows.

        Args:
            message: Message to log.
            level: Required verbosity level (0=normal, 1=-v, 2=-vv).
        """
        if self.json_output:
            return
        if self.quiet and level == 0:
            return
        if level <= self.verbose or level == 0:
            click.echo(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self.json_output:
            self.output.set("error", message)
            self.output.set("status", "error")
        else:
            click.echo(f"Error: {message}", err=True)

    def fail(self, message: str, exit_code: int = 1) -> NoReturn:
        """Report an error and exit."""
        self.error(message)
        if self.json_output:
            self.output.output()
        sys.exit(exit_code)

    def get_tracker(self) -> ActivityTracker:
        """Create the activity tracker and restore stored activities."""
        from maptrack.services.tracker import ActivityTracker

        if self.config is None:
            self.fail("Configuration not loaded")

        tracker = ActivityTracker.from_config(
            self.config,
            log_callback=self.log if not self.json_output else None,
        )
        tracker.load()
        return tracker


pass_context = click.make_pass_decorator(Context, ensure=True)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help=f"Configuration file path (default: {DEFAULT_CONFIG_PATH})",
)
@click.option(
    "--data-dir",
    "-d",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Data directory path (default: ./data)",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Increase verbosity (can be repeated: -v, -vv)",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-error output",
)
@click.option(
    "--json",
    "json_output",
    is_flag=True,
    help="Output in JSON format",
)
@click.version_option(version=__version__, prog_name="maptrack")
@pass_context
def main(
    ctx: Context,
    config_path: Path | None,
    data_dir: Path | None,
    verbose: int,
    quiet: bool,
    json_output: bool,
) -> None:
    """Map-based workout logger.

    Log runs and rides at map coordinates, list them, and render them
    on an interactive map.
    """
    ctx.verbose = verbose
    ctx.quiet = quiet
    ctx.json_output = json_output
    ctx.output = JSONOutput(json_output)

    try:
        ctx.config = load_config(config_path)
    except ValueError as e:
        ctx.fail(str(e), exit_code=2)

    if data_dir is not None:
        ctx.config.storage.directory = data_dir

    if verbose:
        setup_logging(
            ctx.config,
            console_level=logging.DEBUG if verbose > 1 else logging.INFO,
            quiet=quiet,
        )


@main.group()
def add() -> None:
    """Log a new activity at a map location."""


_location_options = [
    click.option("--lat", type=float, required=True, help="Latitude of the map click"),
    click.option("--lng", type=float, required=True, help="Longitude of the map click"),
    click.option("--distance", type=float, required=True, help="Distance in km"),
    click.option("--duration", type=float, required=True, help="Duration in minutes"),
]


def location_options(func: Any) -> Any:
    """Attach the options shared by all activity types."""
    for option in reversed(_location_options):
        func = option(func)
    return func


def _create(
    ctx: Context,
    activity_type: str,
    coords: tuple[float, float],
    distance: float,
    duration: float,
    value: float,
) -> None:
    tracker = ctx.get_tracker()

    try:
        activity = tracker.create_activity(activity_type, coords, distance, duration, value)
    except ValidationError as e:
        ctx.fail(str(e), exit_code=2)

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "activity": activity.to_dict(),
        })
        ctx.output.output()
    else:
        ctx.log(f"{activity.icon} {activity.description}  [{activity.id}]")


@add.command(name="running")
@location_options
@click.option("--cadence", type=float, required=True, help="Cadence in steps/min")
@pass_context
def add_running(
    ctx: Context,
    lat: float,
    lng: float,
    distance: float,
    duration: float,
    cadence: float,
) -> None:
    """Log a run."""
    _create(ctx, "running", (lat, lng), distance, duration, cadence)


@add.command(name="cycling")
@location_options
@click.option("--elevation", type=float, required=True, help="Elevation gain in m (may be negative)")
@pass_context
def add_cycling(
    ctx: Context,
    lat: float,
    lng: float,
    distance: float,
    duration: float,
    elevation: float,
) -> None:
    """Log a ride."""
    _create(ctx, "cycling", (lat, lng), distance, duration, elevation)


@main.command(name="list")
@pass_context
def list_cmd(ctx: Context) -> None:
    """List logged activities."""
    from maptrack.views.listing import format_entries

    tracker = ctx.get_tracker()
    entries = tracker.entries()

    if ctx.json_output:
        ctx.output.update({"activities": entries, "total": len(entries)})
        ctx.output.output()
    else:
        click.echo(format_entries(entries))


@main.command()
@click.argument("activity_id")
@pass_context
def select(ctx: Context, activity_id: str) -> None:
    """Select an activity and show where it is on the map."""
    from maptrack.views.listing import list_entry

    tracker = ctx.get_tracker()

    try:
        activity = tracker.select(activity_id)
    except ActivityNotFoundError as e:
        ctx.fail(str(e))

    if ctx.json_output:
        ctx.output.update({
            "status": "success",
            "activity": list_entry(activity),
            "coords": list(activity.coords),
        })
        ctx.output.output()
    else:
        lat, lng = activity.coords
        ctx.log(f"{activity.icon} {activity.description} at {lat:.5f}, {lng:.5f}")


@main.command(name="map")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output HTML file (default: stdout)",
)
@pass_context
def map_cmd(ctx: Context, output: Path | None) -> None:
    """Generate interactive map visualization."""
    from maptrack.views.map import generate_map

    tracker = ctx.get_tracker()
    config = ctx.config

    try:
        html = generate_map(
            tracker.markers(),
            tracker.entries(),
            zoom=config.map.zoom,
            tile_url=config.map.tile_url,
        )

        if output:
            output.write_text(html, encoding="utf-8")
            ctx.log(f"Map saved to {output}")
        else:
            click.echo(html)

    except OSError as e:
        ctx.fail(f"Map generation failed: {e}")


@main.command()
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Do not ask for confirmation",
)
@pass_context
def reset(ctx: Context, yes: bool) -> None:
    """Delete all logged activities."""
    if not yes and not ctx.json_output:
        click.confirm("Delete all logged activities?", abort=True)

    tracker = ctx.get_tracker()
    removed = len(tracker.store)
    tracker.reset()

    if ctx.json_output:
        ctx.output.update({"status": "success", "removed": removed})
        ctx.output.output()
    else:
        ctx.log(f"Removed {removed} activities")


if __name__ == "__main__":
    main()
