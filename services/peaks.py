"""Peak detection and live-versus-historical peak reconciliation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple

from models.records import (
    Granularity,
    PeakObservation,
    Reading,
    ReconciledPeak,
    parse_timestamp,
)
from models.zones import is_entrance_zone, is_excluded_zone

logger = logging.getLogger(__name__)


@dataclass
class _TimestampBucket:
    total_occupancy: float = 0.0
    zones: Set[str] = field(default_factory=set)
    seen: Set[Tuple[str, str]] = field(default_factory=set)


def _sensor_key(reading: Reading, by_zone: bool) -> Tuple[str, str]:
    if by_zone:
        return reading.floor_id, reading.canonical_zone
    return reading.floor_id, reading.zone_name


def historical_peak(readings: Iterable[Reading], by_zone: bool = False) -> PeakObservation:
    """Find the timestamp with the highest combined occupancy.

    Occupancy is summed across zones per timestamp, counting each sensor once
    per timestamp. A sensor is the floor plus its raw zone name, or its
    canonical zone when ``by_zone`` is set. The peak only moves on a strictly
    higher, positive total, so an all-negative series has no peak hour.
    """
    buckets: Dict[str, _TimestampBucket] = {}
    max_capacity: Optional[float] = None

    for reading in readings:
        pair = _sensor_key(reading, by_zone)
        bucket = buckets.setdefault(reading.timestamp, _TimestampBucket())
        if max_capacity is None and reading.max_capacity:
            max_capacity = reading.max_capacity
        if pair in bucket.seen:
            continue
        bucket.seen.add(pair)
        bucket.zones.add(reading.canonical_zone)
        bucket.total_occupancy += reading.total_occupancy

    peak_value = 0.0
    peak_timestamp: Optional[str] = None
    for timestamp in sorted(buckets):
        total = buckets[timestamp].total_occupancy
        if total > peak_value:
            peak_value = total
            peak_timestamp = timestamp

    if peak_timestamp is None:
        return PeakObservation(max_capacity=max_capacity)

    peak_zones = buckets[peak_timestamp].zones
    source_zone = next(iter(peak_zones)) if len(peak_zones) == 1 else None
    return PeakObservation(
        value=peak_value,
        source_hour_utc=parse_timestamp(peak_timestamp).hour,
        source_zone=source_zone,
        max_capacity=max_capacity,
        timestamp=peak_timestamp,
    )


def live_snapshot(readings: Iterable[Reading], by_zone: bool = False) -> PeakObservation:
    """Current total from a live feed, counting each sensor once."""
    seen: Set[Tuple[str, str]] = set()
    total = 0.0
    max_capacity: Optional[float] = None

    for reading in readings:
        pair = _sensor_key(reading, by_zone)
        if pair in seen:
            continue
        seen.add(pair)
        total += reading.total_occupancy
        if max_capacity is None and reading.max_capacity:
            max_capacity = reading.max_capacity

    return PeakObservation(value=total, max_capacity=max_capacity)


def live_entrance_count(readings: Iterable[Reading]) -> float:
    """People currently inside according to the entrance counter, drift clamped out."""
    return sum(
        max(0.0, reading.total_occupancy)
        for reading in readings
        if is_entrance_zone(reading.zone_name)
    )


_DEFAULT_CAPACITY = {
    Granularity.building: 200.0,
    Granularity.floor: 50.0,
    Granularity.zone: 50.0,
}


def reconcile(
    historical: PeakObservation,
    live_peak: float,
    granularity: Granularity = Granularity.floor,
    live_capacity: Optional[float] = None,
    default_capacity: Optional[float] = None,
) -> ReconciledPeak:
    """Choose between the historical peak and the live value.

    A tie keeps the historical observation and its hour label.
    """
    is_live = live_peak > historical.value
    capacity = (
        historical.max_capacity
        or live_capacity
        or default_capacity
        or _DEFAULT_CAPACITY[granularity]
    )
    return ReconciledPeak(
        value=max(historical.value, live_peak),
        is_live=is_live,
        hour_utc=None if is_live else historical.source_hour_utc,
        max_capacity=capacity,
        granularity=granularity,
    )


@dataclass(frozen=True)
class PeakReport:
    building: ReconciledPeak
    floors: Dict[str, ReconciledPeak]
    zones: Dict[str, ReconciledPeak]


class PeakReconciler:
    """Runs one independent reconciliation per floor, per zone and for the building."""

    def __init__(
        self,
        zone_default_capacity: float = 50.0,
        building_default_capacity: float = 200.0,
    ) -> None:
        self.zone_default_capacity = zone_default_capacity
        self.building_default_capacity = building_default_capacity

    def reconcile_all(
        self,
        historical: Iterable[Reading],
        live: Iterable[Reading],
        floor_id: Optional[str] = None,
    ) -> PeakReport:
        historical_readings = _usable(historical)
        live_readings = _usable(live)

        entrance_live = live_snapshot(r for r in live_readings if is_entrance_zone(r.zone_name))
        building = reconcile(
            historical_peak(r for r in historical_readings if is_entrance_zone(r.zone_name)),
            entrance_live.value,
            granularity=Granularity.building,
            live_capacity=entrance_live.max_capacity,
            default_capacity=self.building_default_capacity,
        )

        historical_rooms = [r for r in historical_readings if not is_entrance_zone(r.zone_name)]
        live_rooms = [r for r in live_readings if not is_entrance_zone(r.zone_name)]

        floors: Dict[str, ReconciledPeak] = {}
        for floor in _ordered_keys(historical_rooms, live_rooms, lambda r: r.floor_id):
            floors[floor] = self._reconcile_group(
                [r for r in historical_rooms if r.floor_id == floor],
                [r for r in live_rooms if r.floor_id == floor],
                Granularity.floor,
            )

        if floor_id is not None:
            historical_rooms = [r for r in historical_rooms if r.floor_id == floor_id]
            live_rooms = [r for r in live_rooms if r.floor_id == floor_id]

        zones: Dict[str, ReconciledPeak] = {}
        for zone in _ordered_keys(
            historical_rooms, live_rooms, lambda r: r.canonical_zone
        ):
            zones[zone] = self._reconcile_group(
                [r for r in historical_rooms if r.canonical_zone == zone],
                [r for r in live_rooms if r.canonical_zone == zone],
                Granularity.zone,
            )

        logger.info(
            "Reconciled %d floor and %d zone peaks", len(floors), len(zones),
            extra={"reading_count": len(historical_readings) + len(live_readings)},
        )
        return PeakReport(building=building, floors=floors, zones=zones)

    def _reconcile_group(
        self,
        historical: List[Reading],
        live: List[Reading],
        granularity: Granularity,
    ) -> ReconciledPeak:
        by_zone = granularity is Granularity.zone
        snapshot = live_snapshot(live, by_zone=by_zone)
        return reconcile(
            historical_peak(historical, by_zone=by_zone),
            snapshot.value,
            granularity=granularity,
            live_capacity=snapshot.max_capacity,
            default_capacity=self.zone_default_capacity,
        )


def _usable(readings: Iterable[Reading]) -> List[Reading]:
    return [reading for reading in readings if not is_excluded_zone(reading.zone_name)]


def _ordered_keys(first: List[Reading], second: List[Reading], key) -> List[str]:
    keys: Dict[str, None] = {}
    for reading in (*first, *second):
        keys.setdefault(key(reading), None)
    return list(keys)


def to_local_hour(hour_utc: Optional[int], utc_offset_hours: int) -> Optional[int]:
    if hour_utc is None:
        return None
    return (hour_utc + utc_offset_hours) % 24


def format_hour(hour: Optional[int]) -> str:
    if hour is None:
        return ""
    if hour == 0:
        return "12 AM"
    if hour < 12:
        return f"{hour} AM"
    if hour == 12:
        return "12 PM"
    return f"{hour - 12} PM"
