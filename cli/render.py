from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def _pct(value: Any) -> str:
    if value is None:
        return "-"
    return f"{value:.1f}%"


def render_aggregate(aggregate: Dict[str, Any]) -> None:
    echo_key_values(
        [
            ("total_occupancy", aggregate.get("total_occupancy")),
            ("peak_occupancy", aggregate.get("peak_occupancy")),
            ("avg_occupancy_percentage", _pct(aggregate.get("avg_occupancy_percentage"))),
            ("sample_count", aggregate.get("sample_count")),
            ("max_capacity", aggregate.get("max_capacity")),
            ("available_capacity", aggregate.get("available_capacity")),
        ]
    )


def render_building(payload: Dict[str, Any]) -> None:
    echo_heading("Building Occupancy")
    render_aggregate(payload)
    echo_key_values([("total_max_capacity", payload.get("total_max_capacity"))])
    if payload.get("entrance_count") is not None:
        echo_key_values([("entrance_count", payload.get("entrance_count"))])

    floors = payload.get("floor_breakdown") or {}
    typer.echo()
    echo_heading("Floors")
    if not floors:
        typer.echo("No floor data available.")
        return
    for floor_id, floor in floors.items():
        typer.echo(
            f"  - {floor_id}: {floor.get('total_occupancy')} people, "
            f"{_pct(floor.get('avg_occupancy_percentage'))}"
        )


def render_floors(payload: Dict[str, Any]) -> None:
    echo_heading("Floor Occupancy")
    if not payload:
        typer.echo("No floor data available.")
        return
    for floor_id, floor in payload.items():
        typer.echo()
        typer.secho(floor_id, bold=True)
        render_aggregate(floor)


def _peak_line(label: str, peak: Dict[str, Any]) -> str:
    if peak.get("is_live"):
        when = "live"
    else:
        when = peak.get("local_hour_label") or "no peak hour"
    return f"  - {label}: {peak.get('value')} / {peak.get('max_capacity')} ({when})"


def render_peaks(payload: Dict[str, Any]) -> None:
    echo_heading("Current Peaks")
    building = payload.get("building")
    if building:
        typer.echo(_peak_line("building", building))

    for title, key in (("Floors", "floors"), ("Zones", "zones")):
        typer.echo()
        echo_heading(title)
        peaks = payload.get(key) or {}
        if not peaks:
            typer.echo("No data available.")
            continue
        for label, peak in peaks.items():
            typer.echo(_peak_line(label, peak))


def render_trend(points: List[Dict[str, Any]]) -> None:
    echo_heading("Occupancy Trend")
    if not points:
        typer.echo("No data available.")
        return
    for point in points:
        typer.echo(
            f"  {point.get('timestamp')}  avg {_pct(point.get('average_occupancy_percentage'))}"
            f"  peak {point.get('peak_occupancy')}"
        )


def _whole_people(value: float) -> int:
    # Halves round up, including negative drift (-0.5 shows as 0).
    return math.floor(value + 0.5)


def render_hourly(payload: Dict[str, Any]) -> None:
    echo_heading(f"Hourly Occupancy (UTC{payload.get('utc_offset_hours', 0):+d})")
    totals = payload.get("totals") or []
    if all(total is None for total in totals):
        typer.echo("No data available.")
        return
    for hour, total in enumerate(totals):
        if total is None:
            continue
        typer.echo(f"  {_hour_label(hour):>5}  {_whole_people(total)}")


def _hour_label(hour: int) -> str:
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"
