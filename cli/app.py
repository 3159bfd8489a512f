from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from cli.client import ApiClient, load_feed
from cli.config import CLIConfig, load_config
from cli.render import (
    render_building,
    render_floors,
    render_hourly,
    render_peaks,
    render_trend,
)


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Query zone, floor and building occupancy from the footfall aggregator service.",
    context_settings={"help_option_names": ["-h", "--help"]},
)

_FEED_HELP = "JSON export of the sensor feed."


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1)
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Aggregator API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="HTTP timeout in seconds.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("building")
def building_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help=_FEED_HELP),
    historical: bool = typer.Option(
        False,
        "--historical/--live",
        help="Treat the file as the historical (nested) feed instead of the live feed.",
    ),
) -> None:
    """Show building occupancy with its floor breakdown."""
    state = _get_state(ctx)
    payload = state.client.building(load_feed(file), historical=historical)
    render_building(payload)


@app.command("floors")
def floors_command(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True, help=_FEED_HELP),
    historical: bool = typer.Option(False, "--historical/--live"),
) -> None:
    """Show per-floor occupancy, including the floor derived from the entrance counter."""
    state = _get_state(ctx)
    payload = state.client.floors(load_feed(file), historical=historical)
    render_floors(payload)


@app.command("peaks")
def peaks_command(
    ctx: typer.Context,
    historical_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Historical (hourly) feed export."
    ),
    live_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Live feed export."
    ),
    floor: Optional[str] = typer.Option(None, "--floor", help="Restrict zone peaks to one floor."),
) -> None:
    """Show the current peak per building, floor and zone."""
    state = _get_state(ctx)
    payload = state.client.peaks(load_feed(historical_file), load_feed(live_file), floor_id=floor)
    render_peaks(payload)


@app.command("trend")
def trend_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Historical feed export."
    ),
    floor: Optional[str] = typer.Option(None, "--floor"),
    zone: Optional[str] = typer.Option(None, "--zone", help="Raw or canonical zone name."),
    daily: bool = typer.Option(False, "--daily", help="Bucket by calendar day."),
) -> None:
    """Show the occupancy trend, oldest bucket first."""
    state = _get_state(ctx)
    points = state.client.trend(load_feed(file), floor_id=floor, zone=zone, daily=daily)
    render_trend(points)


@app.command("hourly")
def hourly_command(
    ctx: typer.Context,
    file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Historical feed export."
    ),
    floor: Optional[str] = typer.Option(None, "--floor"),
    zone: Optional[str] = typer.Option(None, "--zone", help="Raw or canonical zone name."),
) -> None:
    """Show summed occupancy per local hour of day."""
    state = _get_state(ctx)
    payload = state.client.hourly(load_feed(file), floor_id=floor, zone=zone)
    render_hourly(payload)
