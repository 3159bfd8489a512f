"""Chronological trend series for charting."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from models.records import Reading, TrendPoint
from services.aggregator import OccupancyAccumulator


def _group(readings: Iterable[Reading], bucket_of: Callable[[Reading], str]) -> List[TrendPoint]:
    accumulators: Dict[str, OccupancyAccumulator] = {}
    for reading in readings:
        bucket = bucket_of(reading)
        accumulator = accumulators.get(bucket)
        if accumulator is None:
            accumulator = accumulators[bucket] = OccupancyAccumulator(key=bucket)
        accumulator.add(reading)

    points = []
    for bucket in sorted(accumulators):
        aggregate = accumulators[bucket].freeze()
        points.append(
            TrendPoint(
                timestamp=bucket,
                average_occupancy_percentage=aggregate.avg_occupancy_percentage,
                peak_occupancy=aggregate.peak_occupancy,
                total_occupancy=aggregate.total_occupancy,
                sample_count=aggregate.sample_count,
            )
        )
    return points


def group_by_timestamp(readings: Iterable[Reading]) -> List[TrendPoint]:
    """Bucket readings by their exact timestamp string, oldest first.

    Zone and floor are ignored; filter the readings before calling. Lexical
    order of zero-padded ISO-8601 strings is chronological order.
    """
    return _group(readings, lambda reading: reading.timestamp)


def group_by_date(readings: Iterable[Reading]) -> List[TrendPoint]:
    """Daily buckets keyed by the ``YYYY-MM-DD`` prefix of the timestamp."""
    return _group(readings, lambda reading: reading.timestamp.split("T", 1)[0])


def hourly_totals(
    readings: Iterable[Reading], utc_offset_hours: int = 0
) -> List[Optional[float]]:
    """Summed occupancy per local hour of day, ``None`` where nothing was reported.

    Index 0 is local midnight. Negative readings are summed as-is and nothing
    is rounded; display code decides how to show fractional people.
    """
    totals: List[Optional[float]] = [None] * 24
    for reading in readings:
        hour = (reading.hour_utc + utc_offset_hours) % 24
        totals[hour] = (totals[hour] or 0.0) + reading.total_occupancy
    return totals
