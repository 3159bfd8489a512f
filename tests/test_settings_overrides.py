from __future__ import annotations

from typing import Iterable

from services.occupancy import build_default_service
from settings import get_settings


def _clear_caches(caches: Iterable) -> None:
    for cache in caches:
        cache.cache_clear()


def test_environment_overrides_apply(monkeypatch) -> None:
    monkeypatch.setenv("FOOTFALL_ZONE_DEFAULT_CAPACITY", "75")
    monkeypatch.setenv("FOOTFALL_BUILDING_DEFAULT_CAPACITY", "400")
    monkeypatch.setenv("FOOTFALL_DERIVED_FLOOR_ID", "GF")
    monkeypatch.setenv("FOOTFALL_DISPLAY_UTC_OFFSET", "-5")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    caches = (get_settings, build_default_service)
    _clear_caches(caches)

    try:
        settings = get_settings()
        service = build_default_service()

        assert settings.log_level == "DEBUG"
        assert service.zone_default_capacity == 75
        assert service.building_default_capacity == 400
        assert service.derived_floor_id == "GF"
        assert service.utc_offset_hours == -5
        assert service.reconciler.zone_default_capacity == 75
        assert service.reconciler.building_default_capacity == 400
    finally:
        _clear_caches(caches)


def test_invalid_values_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("FOOTFALL_ZONE_DEFAULT_CAPACITY", "-3")
    monkeypatch.setenv("FOOTFALL_BUILDING_DEFAULT_CAPACITY", "lots")
    monkeypatch.setenv("FOOTFALL_DERIVED_FLOOR_ID", "   ")
    monkeypatch.setenv("FOOTFALL_DISPLAY_UTC_OFFSET", "30")

    get_settings.cache_clear()
    try:
        settings = get_settings()

        assert settings.zone_default_capacity == 50
        assert settings.building_default_capacity == 200
        assert settings.derived_floor_id == "1F"
        assert settings.display_utc_offset_hours == 8
    finally:
        get_settings.cache_clear()
