"""Floor, zone and building views over a batch of readings."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Iterable, List, Optional

from models.records import (
    BuildingAggregate,
    FloorAggregate,
    OccupancyAggregate,
    Reading,
    TrendPoint,
)
from services.aggregator import Aggregator, GroupBy, aggregate_building
from services.derived import derive_ground_floor
from models.zones import is_entrance_zone, is_excluded_zone, normalize_zone_name
from services.peaks import PeakReconciler, PeakReport, live_entrance_count
from services.trends import group_by_date, group_by_timestamp, hourly_totals
from settings import get_settings

logger = logging.getLogger(__name__)


class OccupancyService:
    """Stateless facade: every call works on the batch it is given."""

    def __init__(
        self,
        aggregator: Aggregator,
        reconciler: PeakReconciler,
        derived_floor_id: str = "1F",
        zone_default_capacity: float = 50.0,
        building_default_capacity: float = 200.0,
        utc_offset_hours: int = 8,
    ) -> None:
        self.aggregator = aggregator
        self.reconciler = reconciler
        self.derived_floor_id = derived_floor_id
        self.zone_default_capacity = zone_default_capacity
        self.building_default_capacity = building_default_capacity
        self.utc_offset_hours = utc_offset_hours

    def floors(self, readings: Iterable[Reading]) -> Dict[str, FloorAggregate]:
        """Per-floor aggregates, with the ground floor derived from the entrance counter.

        The derived floor replaces any directly sensored readings under the
        same floor id. It is only added when the batch has entrance data.
        """
        readings = list(readings)
        per_floor = self.aggregator.aggregate(readings, GroupBy.floor)
        entrance = self.aggregator.entrance(readings)
        if entrance.sample_count == 0:
            return per_floor

        per_floor[self.derived_floor_id] = self.derive(
            entrance,
            [aggregate for key, aggregate in per_floor.items() if key != self.derived_floor_id],
        )
        return per_floor

    def derive(
        self,
        entrance: OccupancyAggregate,
        others: Iterable[OccupancyAggregate],
        floor_id: Optional[str] = None,
    ) -> OccupancyAggregate:
        return derive_ground_floor(
            entrance,
            others,
            floor_id=floor_id or self.derived_floor_id,
            default_capacity=self.building_default_capacity,
        )

    def zones(
        self,
        readings: Iterable[Reading],
        floor_id: Optional[str] = None,
        known_zones_only: bool = False,
    ) -> Dict[str, OccupancyAggregate]:
        return self.aggregator.aggregate(
            readings,
            GroupBy.zone,
            floor_id=floor_id,
            include_entrance=True,
            known_zones_only=known_zones_only,
        )

    def building(self, readings: Iterable[Reading]) -> BuildingAggregate:
        """Building rollup over the sensored floors.

        Zones the normalizer does not recognise still count here.
        """
        readings = list(readings)
        per_floor = self.aggregator.aggregate(readings, GroupBy.floor)
        building = aggregate_building(per_floor, default_capacity=self.building_default_capacity)
        logger.info(
            "Aggregated building",
            extra={
                "reading_count": len(readings),
                "sample_count": building.sample_count,
            },
        )
        return building

    def entrance_count(self, readings: Iterable[Reading]) -> float:
        return live_entrance_count(readings)

    def peaks(
        self,
        historical: Iterable[Reading],
        live: Iterable[Reading],
        floor_id: Optional[str] = None,
    ) -> PeakReport:
        return self.reconciler.reconcile_all(historical, live, floor_id=floor_id)

    def trend(
        self,
        readings: Iterable[Reading],
        floor_id: Optional[str] = None,
        zone: Optional[str] = None,
        daily: bool = False,
    ) -> List[TrendPoint]:
        selected = self.select(readings, floor_id=floor_id, zone=zone)
        return group_by_date(selected) if daily else group_by_timestamp(selected)

    def hourly(
        self,
        readings: Iterable[Reading],
        floor_id: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> List[Optional[float]]:
        selected = self.select(readings, floor_id=floor_id, zone=zone)
        return hourly_totals(selected, utc_offset_hours=self.utc_offset_hours)

    @staticmethod
    def select(
        readings: Iterable[Reading],
        floor_id: Optional[str] = None,
        zone: Optional[str] = None,
    ) -> List[Reading]:
        """Readings for a chart: no relocated sensors, optional floor and zone filters.

        The entrance counter is left out unless it is the requested zone.
        """
        wanted_zone = normalize_zone_name(zone) if zone else None
        selected = []
        for reading in readings:
            if is_excluded_zone(reading.zone_name):
                continue
            if floor_id is not None and reading.floor_id != floor_id:
                continue
            if wanted_zone is None:
                if is_entrance_zone(reading.zone_name):
                    continue
            elif reading.canonical_zone != wanted_zone:
                continue
            selected.append(reading)
        return selected


@lru_cache
def build_default_service() -> OccupancyService:
    """Factory that wires the service from environment settings."""
    settings = get_settings()
    reconciler = PeakReconciler(
        zone_default_capacity=settings.zone_default_capacity,
        building_default_capacity=settings.building_default_capacity,
    )
    return OccupancyService(
        aggregator=Aggregator(),
        reconciler=reconciler,
        derived_floor_id=settings.derived_floor_id,
        zone_default_capacity=settings.zone_default_capacity,
        building_default_capacity=settings.building_default_capacity,
        utc_offset_hours=settings.display_utc_offset_hours,
    )
