"""Flatten feed payloads into domain readings."""

from __future__ import annotations

import logging
from typing import Iterable, List

from app.schemas import HistoricalSeries, LiveReading
from models.records import Reading
from models.zones import is_excluded_zone

logger = logging.getLogger(__name__)


def flatten_historical(series: Iterable[HistoricalSeries]) -> List[Reading]:
    """Hoist ``floor_id``/``zone_name`` from each series onto its readings."""
    readings: List[Reading] = []
    excluded = 0
    for item in series:
        if is_excluded_zone(item.zone_name):
            excluded += len(item.data)
            continue
        for point in item.data:
            readings.append(
                Reading(
                    floor_id=item.floor_id,
                    zone_name=item.zone_name,
                    timestamp=point.timestamp,
                    total_occupancy=point.total_occupancy,
                    occupancy_percentage=point.occupancy_percentage,
                    max_capacity=point.max_capacity,
                )
            )
    _log_batch("historical", readings, excluded)
    return readings


def flatten_live(items: Iterable[LiveReading]) -> List[Reading]:
    readings: List[Reading] = []
    excluded = 0
    for item in items:
        if is_excluded_zone(item.zone_name):
            excluded += 1
            continue
        readings.append(
            Reading(
                floor_id=item.floor_id,
                zone_name=item.zone_name,
                timestamp=item.timestamp,
                total_occupancy=item.total_occupancy,
                occupancy_percentage=item.occupancy_percentage,
                max_capacity=item.max_capacity,
            )
        )
    _log_batch("live", readings, excluded)
    return readings


def _log_batch(source: str, readings: List[Reading], excluded: int) -> None:
    if excluded:
        logger.info(
            "Dropped readings from relocated sensors",
            extra={"excluded_count": excluded, "reason": source},
        )
    logger.debug(
        "Flattened %s feed", source, extra={"reading_count": len(readings)}
    )
