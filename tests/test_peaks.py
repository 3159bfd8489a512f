from __future__ import annotations

from typing import Optional

import pytest

from models.records import Granularity, PeakObservation, Reading
from services.aggregator import Aggregator
from services.occupancy import OccupancyService
from services.peaks import (
    PeakReconciler,
    format_hour,
    historical_peak,
    live_entrance_count,
    live_snapshot,
    reconcile,
    to_local_hour,
)


def _reading(
    occupancy: float,
    timestamp: str = "2025-04-30T02:00:00.000Z",
    floor_id: str = "2F",
    zone_name: str = "South-zone",
    max_capacity: Optional[float] = None,
) -> Reading:
    return Reading(
        floor_id=floor_id,
        zone_name=zone_name,
        timestamp=timestamp,
        total_occupancy=occupancy,
        occupancy_percentage=0.0,
        max_capacity=max_capacity,
    )


def test_tie_keeps_historical_peak_and_hour() -> None:
    peak = reconcile(PeakObservation(value=50, source_hour_utc=14), 50)

    assert peak.value == 50
    assert peak.is_live is False
    assert peak.hour_utc == 14


def test_higher_live_value_wins_without_hour() -> None:
    peak = reconcile(PeakObservation(value=50, source_hour_utc=14), 51)

    assert peak.value == 51
    assert peak.is_live is True
    assert peak.hour_utc is None


def test_capacity_prefers_historical_then_live_then_default() -> None:
    assert reconcile(PeakObservation(max_capacity=80), 1, live_capacity=60).max_capacity == 80
    assert reconcile(PeakObservation(), 1, live_capacity=60).max_capacity == 60
    assert reconcile(PeakObservation(), 1, default_capacity=75).max_capacity == 75
    assert reconcile(PeakObservation(), 1, Granularity.building).max_capacity == 200
    assert reconcile(PeakObservation(), 1, Granularity.zone).max_capacity == 50


def test_historical_peak_sums_zones_per_timestamp() -> None:
    readings = [
        _reading(10, "2025-04-30T02:00:00.000Z", zone_name="South-zone"),
        _reading(20, "2025-04-30T02:00:00.000Z", zone_name="North-zone"),
        _reading(40, "2025-04-30T03:00:00.000Z", zone_name="South-zone"),
        _reading(5, "2025-04-30T03:00:00.000Z", zone_name="North-zone"),
    ]

    peak = historical_peak(readings)

    assert peak.value == 45
    assert peak.source_hour_utc == 3
    assert peak.timestamp == "2025-04-30T03:00:00.000Z"
    assert peak.source_zone is None


def test_historical_peak_counts_each_sensor_once_per_timestamp() -> None:
    readings = [
        _reading(10, zone_name="South-zone", max_capacity=60),
        _reading(10, zone_name="South-zone"),
        _reading(6, zone_name="South-Zone"),
    ]

    peak = historical_peak(readings)

    assert peak.value == 16
    assert peak.source_zone == "Zone A"
    assert peak.max_capacity == 60
    assert historical_peak(readings, by_zone=True).value == 10


def test_historical_peak_of_negative_series_has_no_hour() -> None:
    readings = [_reading(-5, "2025-04-30T01:00:00Z"), _reading(-2, "2025-04-30T02:00:00Z")]

    peak = historical_peak(readings)

    assert peak.value == 0
    assert peak.source_hour_utc is None
    assert historical_peak([]) == PeakObservation()


def test_live_snapshot_and_entrance_count() -> None:
    readings = [
        _reading(12, zone_name="South-zone", max_capacity=50),
        _reading(12, zone_name="South-zone"),
        _reading(5, zone_name="south-zone"),
        _reading(8, zone_name="North-zone"),
    ]

    assert live_snapshot(readings) == PeakObservation(value=25, max_capacity=50)
    assert live_snapshot(readings, by_zone=True) == PeakObservation(value=20, max_capacity=50)
    assert live_entrance_count(
        [_reading(30, zone_name="Main-Entrance"), _reading(-4, zone_name="Main-Entrance")]
    ) == 30


def test_reconcile_all_builds_independent_peaks() -> None:
    historical = [
        _reading(80, "2025-04-30T02:00:00.000Z", floor_id="1F", zone_name="Main-Entrance",
                 max_capacity=200),
        _reading(10, "2025-04-30T02:00:00.000Z", zone_name="South-zone"),
        _reading(20, "2025-04-30T02:00:00.000Z", zone_name="North-zone"),
        _reading(40, "2025-04-30T03:00:00.000Z", zone_name="South-zone"),
        _reading(5, "2025-04-30T03:00:00.000Z", zone_name="North-zone"),
        _reading(5, "2025-04-30T02:00:00.000Z", floor_id="3F", zone_name="Central-zone"),
    ]
    live = [
        _reading(60, floor_id="1F", zone_name="Main-Entrance"),
        _reading(30, zone_name="South-Zone"),
        _reading(15, zone_name="North-Zone"),
        _reading(12, floor_id="3F", zone_name="Central-Zone"),
        _reading(500, floor_id="3F", zone_name="relocated"),
    ]

    report = PeakReconciler().reconcile_all(historical, live)

    assert report.building.value == 80
    assert report.building.hour_utc == 2
    assert report.building.max_capacity == 200
    assert report.building.granularity is Granularity.building

    assert list(report.floors) == ["2F", "3F"]
    assert report.floors["2F"].value == 45
    assert report.floors["2F"].is_live is False
    assert report.floors["2F"].hour_utc == 3
    assert report.floors["3F"].value == 12
    assert report.floors["3F"].is_live is True
    assert report.floors["3F"].max_capacity == 50

    assert report.zones["Zone A"].value == 40
    assert report.zones["Zone C"].value == 20
    assert report.zones["Zone C"].hour_utc == 2
    assert report.zones["Zone B"].is_live is True
    assert "Main Entrance" not in report.zones


def test_reconcile_all_restricts_zones_to_floor() -> None:
    historical = [
        _reading(3, floor_id="2F", zone_name="South-zone"),
        _reading(4, floor_id="3F", zone_name="North-zone"),
    ]

    report = PeakReconciler().reconcile_all(historical, [], floor_id="3F")

    assert set(report.floors) == {"2F", "3F"}
    assert list(report.zones) == ["Zone C"]


def test_building_peak_uses_configured_default_capacity() -> None:
    report = PeakReconciler(building_default_capacity=320).reconcile_all([], [])

    assert report.building.value == 0
    assert report.building.max_capacity == 320


@pytest.mark.parametrize(
    "hour, label",
    [(None, ""), (0, "12 AM"), (9, "9 AM"), (12, "12 PM"), (13, "1 PM"), (23, "11 PM")],
)
def test_format_hour(hour, label) -> None:
    assert format_hour(hour) == label


def test_to_local_hour_wraps_past_midnight() -> None:
    assert to_local_hour(2, 8) == 10
    assert to_local_hour(20, 8) == 4
    assert to_local_hour(None, 8) is None


def test_floor_peak_never_below_current_floor_occupancy() -> None:
    live = [
        _reading(12, zone_name="South-zone"),
        _reading(8, zone_name="South-Zone"),
    ]
    historical = [
        _reading(12, "2025-04-30T01:00:00Z", zone_name="South-zone"),
        _reading(8, "2025-04-30T01:00:00Z", zone_name="South-Zone"),
    ]
    service = OccupancyService(aggregator=Aggregator(), reconciler=PeakReconciler())

    current = service.floors(live)["2F"].total_occupancy
    live_only = service.peaks([], live)
    with_history = service.peaks(historical, live)

    assert current == 20
    assert live_only.floors["2F"].value >= current
    assert live_only.floors["2F"].is_live is True
    assert with_history.floors["2F"].value == 20
    assert with_history.floors["2F"].is_live is False
    assert with_history.floors["2F"].hour_utc == 1
    assert with_history.zones["Zone A"].value == 12
