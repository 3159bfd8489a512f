"""Zone name normalization for the footfall sensor feed.

The feed spells the same physical zone several ways (``South-zone``,
``South-Zone``, ...). Everything downstream keys on the canonical label
returned here.
"""

from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache
from typing import Dict


class CanonicalZone(str, Enum):
    """Zone labels the dashboard shows, whatever the sensor feed calls them."""

    zone_a = "Zone A"
    zone_b = "Zone B"
    zone_c = "Zone C"
    main_entrance = "Main Entrance"


EXCLUDED_ZONE_NAME = "relocated"

_ZONE_ALIASES: Dict[str, CanonicalZone] = {
    "south-zone": CanonicalZone.zone_a,
    "central-zone": CanonicalZone.zone_b,
    "north-zone": CanonicalZone.zone_c,
    "main-entrance": CanonicalZone.main_entrance,
}

_SUBSTRING_RULES = (
    ("south", CanonicalZone.zone_a),
    ("central", CanonicalZone.zone_b),
    ("north", CanonicalZone.zone_c),
)

_SEPARATORS = re.compile(r"[\s_\-]+")


def is_excluded_zone(raw_zone_name: str) -> bool:
    """Relocated sensors never contribute to any aggregate."""
    return raw_zone_name.strip().lower() == EXCLUDED_ZONE_NAME


@lru_cache(maxsize=256)
def normalize_zone_name(raw_zone_name: str) -> str:
    """Map a raw zone name to its canonical label.

    Unknown names come back unchanged so callers never lose occupancy from a
    zone the table does not know about yet.
    """
    lowered = raw_zone_name.strip().lower()

    alias = _ZONE_ALIASES.get(lowered)
    if alias is not None:
        return alias.value

    if _SEPARATORS.sub("", lowered) == "mainentrance":
        return CanonicalZone.main_entrance.value

    for needle, zone in _SUBSTRING_RULES:
        if needle in lowered:
            return zone.value

    return raw_zone_name


def is_entrance_zone(raw_zone_name: str) -> bool:
    return normalize_zone_name(raw_zone_name) == CanonicalZone.main_entrance.value


def is_known_zone(raw_zone_name: str) -> bool:
    label = normalize_zone_name(raw_zone_name)
    return any(label == zone.value for zone in CanonicalZone)
