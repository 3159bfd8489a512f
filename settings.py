from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache


_ZONE_CAPACITY_ENV = "FOOTFALL_ZONE_DEFAULT_CAPACITY"
_BUILDING_CAPACITY_ENV = "FOOTFALL_BUILDING_DEFAULT_CAPACITY"
_DERIVED_FLOOR_ENV = "FOOTFALL_DERIVED_FLOOR_ID"
_UTC_OFFSET_ENV = "FOOTFALL_DISPLAY_UTC_OFFSET"
_LOG_LEVEL_ENV = "LOG_LEVEL"


@dataclass(frozen=True)
class Settings:
    zone_default_capacity: float
    building_default_capacity: float
    derived_floor_id: str
    display_utc_offset_hours: int
    log_level: str


def _read_env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


def _read_str_env(name: str, default: str) -> str:
    return _read_env(name) or default


def _read_capacity(name: str, default: float) -> float:
    candidate = _read_env(name)
    if candidate is None:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_utc_offset(default: int) -> int:
    candidate = _read_env(_UTC_OFFSET_ENV)
    if candidate is None:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if -12 <= parsed <= 14 else default


@lru_cache
def get_settings() -> Settings:
    return Settings(
        zone_default_capacity=_read_capacity(_ZONE_CAPACITY_ENV, 50.0),
        building_default_capacity=_read_capacity(_BUILDING_CAPACITY_ENV, 200.0),
        derived_floor_id=_read_str_env(_DERIVED_FLOOR_ENV, "1F"),
        display_utc_offset_hours=_read_utc_offset(8),
        log_level=_read_str_env(_LOG_LEVEL_ENV, "INFO").upper(),
    )
