"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Optional

from models.zones import normalize_zone_name


class Granularity(str, Enum):
    building = "building"
    floor = "floor"
    zone = "zone"


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, treating naive values as UTC."""

    candidate = value.strip()
    if not candidate:
        raise ValueError("Timestamp is empty.")

    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"

    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError as exc:
        raise ValueError(f"Invalid timestamp format: {value!r}") from exc

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)

    return parsed.astimezone(timezone.utc)


@dataclass(frozen=True, slots=True)
class Reading:
    """One occupancy sample for a zone on a floor.

    ``timestamp`` keeps the raw ISO string from the feed; bucketing and
    ordering work on that string directly.
    """

    floor_id: str
    zone_name: str
    timestamp: str
    total_occupancy: float
    occupancy_percentage: float
    max_capacity: Optional[float] = None

    @property
    def canonical_zone(self) -> str:
        return normalize_zone_name(self.zone_name)

    @property
    def hour_utc(self) -> int:
        return parse_timestamp(self.timestamp).hour


@dataclass(frozen=True)
class OccupancyAggregate:
    """Rolled-up occupancy for one floor or zone key."""

    key: str
    total_occupancy: float = 0.0
    peak_occupancy: float = 0.0
    total_percentage: float = 0.0
    sample_count: int = 0
    avg_occupancy_percentage: float = 0.0
    max_capacity: Optional[float] = None

    def capacity(self, default: float) -> float:
        return self.max_capacity if self.max_capacity else default


FloorAggregate = OccupancyAggregate


@dataclass(frozen=True)
class BuildingAggregate(OccupancyAggregate):
    total_max_capacity: float = 0.0
    floor_breakdown: Dict[str, OccupancyAggregate] = field(default_factory=dict)


@dataclass(frozen=True)
class PeakObservation:
    value: float = 0.0
    source_hour_utc: Optional[int] = None
    source_zone: Optional[str] = None
    max_capacity: Optional[float] = None
    timestamp: Optional[str] = None


@dataclass(frozen=True)
class ReconciledPeak:
    value: float
    is_live: bool
    hour_utc: Optional[int]
    max_capacity: float
    granularity: Granularity = Granularity.floor


@dataclass(frozen=True)
class TrendPoint:
    timestamp: str
    average_occupancy_percentage: float
    peak_occupancy: float
    total_occupancy: float
    sample_count: int
