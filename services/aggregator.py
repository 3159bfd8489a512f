"""Aggregation logic for occupancy readings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, Mapping, Optional

from models.records import BuildingAggregate, OccupancyAggregate, Reading
from models.zones import (
    is_entrance_zone,
    is_excluded_zone,
    is_known_zone,
)

logger = logging.getLogger(__name__)

BUILDING_KEY = "building"


class GroupBy(str, Enum):
    floor = "floor"
    zone = "zone"


@dataclass
class OccupancyAccumulator:
    """Running totals for one key. Created per call, never shared."""

    key: str
    total_occupancy: float = 0.0
    peak_occupancy: float = 0.0
    total_percentage: float = 0.0
    sample_count: int = 0
    max_capacity: Optional[float] = None

    def add(self, reading: Reading) -> None:
        self.total_occupancy += reading.total_occupancy
        # Peak starts at zero, so an all-negative series reports 0.
        if reading.total_occupancy > self.peak_occupancy:
            self.peak_occupancy = reading.total_occupancy
        self.total_percentage += reading.occupancy_percentage
        self.sample_count += 1
        if self.max_capacity is None and reading.max_capacity:
            self.max_capacity = reading.max_capacity

    def freeze(self) -> OccupancyAggregate:
        return OccupancyAggregate(
            key=self.key,
            total_occupancy=self.total_occupancy,
            peak_occupancy=self.peak_occupancy,
            total_percentage=self.total_percentage,
            sample_count=self.sample_count,
            avg_occupancy_percentage=average(self.total_percentage, self.sample_count),
            max_capacity=self.max_capacity,
        )


def average(total: float, count: int) -> float:
    return total / count if count > 0 else 0.0


class Aggregator:
    """Pure aggregation component shared by the floor, zone and building views."""

    def aggregate(
        self,
        readings: Iterable[Reading],
        group_by: GroupBy = GroupBy.floor,
        floor_id: Optional[str] = None,
        include_entrance: bool = False,
        known_zones_only: bool = False,
    ) -> Dict[str, OccupancyAggregate]:
        """Fold readings into one aggregate per floor or canonical zone.

        Relocated zones are always dropped. The entrance counter is dropped
        unless ``include_entrance`` is set, since it is a building-wide
        reading rather than part of any floor. ``known_zones_only`` hides
        zones the normalizer does not recognise; building totals should
        leave it off.
        """
        accumulators: Dict[str, OccupancyAccumulator] = {}
        negative_count = 0

        for reading in readings:
            if is_excluded_zone(reading.zone_name):
                continue
            if floor_id is not None and reading.floor_id != floor_id:
                continue
            if not include_entrance and is_entrance_zone(reading.zone_name):
                continue
            if known_zones_only and not is_known_zone(reading.zone_name):
                continue

            if group_by is GroupBy.zone:
                key = reading.canonical_zone
            else:
                key = reading.floor_id

            accumulator = accumulators.get(key)
            if accumulator is None:
                accumulator = accumulators[key] = OccupancyAccumulator(key=key)
            accumulator.add(reading)

            if reading.total_occupancy < 0:
                negative_count += 1

        if negative_count:
            logger.warning(
                "Negative occupancy readings included in totals",
                extra={"negative_count": negative_count, "floor_id": floor_id},
            )

        return {key: accumulator.freeze() for key, accumulator in accumulators.items()}

    def aggregate_one(self, key: str, readings: Iterable[Reading]) -> OccupancyAggregate:
        """Fold every reading into a single aggregate, without any filtering."""
        accumulator = OccupancyAccumulator(key=key)
        for reading in readings:
            accumulator.add(reading)
        return accumulator.freeze()

    def entrance(self, readings: Iterable[Reading]) -> OccupancyAggregate:
        """Aggregate of the building entrance counter across all floors."""
        return self.aggregate_one(
            BUILDING_KEY,
            (
                reading
                for reading in readings
                if not is_excluded_zone(reading.zone_name)
                and is_entrance_zone(reading.zone_name)
            ),
        )


def aggregate_building(
    per_floor: Mapping[str, OccupancyAggregate],
    default_capacity: float = 200.0,
) -> BuildingAggregate:
    """Compose floor aggregates into the building view.

    The building average comes from the flattened sample set
    (``sum(total_percentage) / sum(sample_count)``), not from averaging the
    per-floor averages. The building peak is the highest single floor peak.
    """
    floors = list(per_floor.values())
    total_percentage = sum(floor.total_percentage for floor in floors)
    sample_count = sum(floor.sample_count for floor in floors)
    observed_capacity = sum(floor.max_capacity or 0.0 for floor in floors)
    total_max_capacity = observed_capacity or default_capacity

    return BuildingAggregate(
        key=BUILDING_KEY,
        total_occupancy=sum(floor.total_occupancy for floor in floors),
        peak_occupancy=max((floor.peak_occupancy for floor in floors), default=0.0),
        total_percentage=total_percentage,
        sample_count=sample_count,
        avg_occupancy_percentage=average(total_percentage, sample_count),
        max_capacity=total_max_capacity,
        total_max_capacity=total_max_capacity,
        floor_breakdown=dict(per_floor),
    )


def available_capacity(capacity: float, occupancy: float) -> float:
    """Free places shown next to occupancy; clamped so drift never goes negative."""
    return max(0.0, capacity - occupancy)
