"""Ground floor occupancy inferred from the entrance counter.

The ground floor has no sensor of its own. Its footfall is whatever the
entrance counter saw that the sensored floors above did not account for.
Live snapshots and historical rollups both go through
:func:`derive_ground_floor`.
"""

from __future__ import annotations

import logging
from typing import Iterable

from models.records import OccupancyAggregate

logger = logging.getLogger(__name__)


def derive_ground_floor(
    entrance: OccupancyAggregate,
    others: Iterable[OccupancyAggregate],
    floor_id: str = "1F",
    default_capacity: float = 200.0,
) -> OccupancyAggregate:
    others = list(others)

    # Occupancy and percentage are clamped independently; 0 people at a
    # positive percentage is a valid result.
    occupancy = max(
        0.0, entrance.total_occupancy - sum(other.total_occupancy for other in others)
    )
    percentage = max(
        0.0,
        entrance.avg_occupancy_percentage
        - sum(other.avg_occupancy_percentage for other in others),
    )
    peak = max(0.0, entrance.peak_occupancy - sum(other.peak_occupancy for other in others))

    logger.debug(
        "Derived ground floor from entrance counter",
        extra={"floor_id": floor_id, "sample_count": entrance.sample_count},
    )

    return OccupancyAggregate(
        key=floor_id,
        total_occupancy=occupancy,
        peak_occupancy=peak,
        total_percentage=percentage,
        sample_count=1,
        avg_occupancy_percentage=percentage,
        max_capacity=entrance.capacity(default_capacity),
    )
