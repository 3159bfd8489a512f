"""HTTP route definitions for the service."""

from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query, status

from app import schemas
from models.records import OccupancyAggregate, ReconciledPeak
from services.aggregator import available_capacity
from services.ingest import flatten_historical, flatten_live
from services.occupancy import OccupancyService, build_default_service
from services.peaks import format_hour, to_local_hour

router = APIRouter()


def get_service() -> OccupancyService:
    return build_default_service()


def _aggregate_out(aggregate: OccupancyAggregate, default_capacity: float) -> schemas.Aggregate:
    out = schemas.Aggregate.model_validate(aggregate)
    return out.model_copy(
        update={
            "available_capacity": available_capacity(
                aggregate.capacity(default_capacity), aggregate.total_occupancy
            )
        }
    )


def _aggregates_out(
    aggregates: Dict[str, OccupancyAggregate], service: OccupancyService
) -> Dict[str, schemas.Aggregate]:
    return {
        key: _aggregate_out(aggregate, service.zone_default_capacity)
        for key, aggregate in aggregates.items()
    }


def _peak_out(peak: ReconciledPeak, service: OccupancyService) -> schemas.ReconciledPeak:
    local_hour = to_local_hour(peak.hour_utc, service.utc_offset_hours)
    out = schemas.ReconciledPeak.model_validate(peak)
    return out.model_copy(
        update={"local_hour": local_hour, "local_hour_label": format_hour(local_hour)}
    )


def _building_out(
    service: OccupancyService, readings, entrance_count: Optional[float] = None
) -> schemas.BuildingAggregate:
    building = service.building(readings)
    out = schemas.BuildingAggregate.model_validate(building, from_attributes=True)
    return out.model_copy(
        update={
            "floor_breakdown": _aggregates_out(building.floor_breakdown, service),
            "available_capacity": available_capacity(
                building.total_max_capacity, building.total_occupancy
            ),
            "entrance_count": entrance_count,
        }
    )


@router.post(
    "/live/building",
    response_model=schemas.BuildingAggregate,
    summary="Building occupancy from a live snapshot.",
)
async def live_building(
    items: List[schemas.LiveReading] = Body(...),
    service: OccupancyService = Depends(get_service),
) -> schemas.BuildingAggregate:
    readings = flatten_live(items)
    return _building_out(service, readings, entrance_count=service.entrance_count(readings))


@router.post(
    "/live/floors",
    response_model=Dict[str, schemas.Aggregate],
    summary="Per-floor occupancy from a live snapshot, including the derived ground floor.",
)
async def live_floors(
    items: List[schemas.LiveReading] = Body(...),
    service: OccupancyService = Depends(get_service),
) -> Dict[str, schemas.Aggregate]:
    return _aggregates_out(service.floors(flatten_live(items)), service)


@router.post(
    "/live/zones",
    response_model=Dict[str, schemas.Aggregate],
    summary="Per-zone occupancy from a live snapshot.",
)
async def live_zones(
    items: List[schemas.LiveReading] = Body(...),
    floor_id: Optional[str] = Query(None, description="Restrict to one floor."),
    known_only: bool = Query(False, description="Hide zones with unrecognised names."),
    service: OccupancyService = Depends(get_service),
) -> Dict[str, schemas.Aggregate]:
    zones = service.zones(flatten_live(items), floor_id=floor_id, known_zones_only=known_only)
    return _aggregates_out(zones, service)


@router.post(
    "/historical/building",
    response_model=schemas.BuildingAggregate,
    summary="Building occupancy over a historical range.",
)
async def historical_building(
    series: List[schemas.HistoricalSeries] = Body(...),
    service: OccupancyService = Depends(get_service),
) -> schemas.BuildingAggregate:
    return _building_out(service, flatten_historical(series))


@router.post(
    "/historical/floors",
    response_model=Dict[str, schemas.Aggregate],
    summary="Per-floor occupancy over a historical range, including the derived ground floor.",
)
async def historical_floors(
    series: List[schemas.HistoricalSeries] = Body(...),
    service: OccupancyService = Depends(get_service),
) -> Dict[str, schemas.Aggregate]:
    return _aggregates_out(service.floors(flatten_historical(series)), service)


@router.post(
    "/historical/zones",
    response_model=Dict[str, schemas.Aggregate],
    summary="Per-zone occupancy over a historical range.",
)
async def historical_zones(
    series: List[schemas.HistoricalSeries] = Body(...),
    floor_id: Optional[str] = Query(None, description="Restrict to one floor."),
    known_only: bool = Query(False, description="Hide zones with unrecognised names."),
    service: OccupancyService = Depends(get_service),
) -> Dict[str, schemas.Aggregate]:
    zones = service.zones(
        flatten_historical(series), floor_id=floor_id, known_zones_only=known_only
    )
    return _aggregates_out(zones, service)


@router.post(
    "/historical/trend",
    response_model=List[schemas.TrendPoint],
    summary="Chronological trend bucketed by timestamp.",
)
async def historical_trend(
    series: List[schemas.HistoricalSeries] = Body(...),
    floor_id: Optional[str] = Query(None),
    zone: Optional[str] = Query(None, description="Raw or canonical zone name."),
    service: OccupancyService = Depends(get_service),
) -> List[schemas.TrendPoint]:
    points = service.trend(flatten_historical(series), floor_id=floor_id, zone=zone)
    return [schemas.TrendPoint.model_validate(point) for point in points]


@router.post(
    "/historical/trend/daily",
    response_model=List[schemas.TrendPoint],
    summary="Chronological trend bucketed by calendar day.",
)
async def historical_daily_trend(
    series: List[schemas.HistoricalSeries] = Body(...),
    floor_id: Optional[str] = Query(None),
    zone: Optional[str] = Query(None),
    service: OccupancyService = Depends(get_service),
) -> List[schemas.TrendPoint]:
    points = service.trend(flatten_historical(series), floor_id=floor_id, zone=zone, daily=True)
    return [schemas.TrendPoint.model_validate(point) for point in points]


@router.post(
    "/historical/hourly",
    response_model=schemas.HourlyTotals,
    summary="Summed occupancy per local hour of day.",
)
async def historical_hourly(
    series: List[schemas.HistoricalSeries] = Body(...),
    floor_id: Optional[str] = Query(None),
    zone: Optional[str] = Query(None),
    service: OccupancyService = Depends(get_service),
) -> schemas.HourlyTotals:
    totals = service.hourly(flatten_historical(series), floor_id=floor_id, zone=zone)
    return schemas.HourlyTotals(utc_offset_hours=service.utc_offset_hours, totals=totals)


@router.post(
    "/peaks",
    response_model=schemas.PeakReport,
    summary="Reconcile historical peaks with the live snapshot per building, floor and zone.",
)
async def peaks(
    request: schemas.PeakRequest,
    floor_id: Optional[str] = Query(None, description="Restrict zone peaks to one floor."),
    service: OccupancyService = Depends(get_service),
) -> schemas.PeakReport:
    report = service.peaks(
        flatten_historical(request.historical),
        flatten_live(request.live),
        floor_id=floor_id,
    )
    return schemas.PeakReport(
        building=_peak_out(report.building, service),
        floors={key: _peak_out(peak, service) for key, peak in report.floors.items()},
        zones={key: _peak_out(peak, service) for key, peak in report.zones.items()},
    )


@router.post(
    "/derive/ground-floor",
    response_model=schemas.Aggregate,
    summary="Derive the unsensored floor from the entrance counter and the other floors.",
)
async def derive_ground_floor(
    request: schemas.DerivedFloorRequest,
    service: OccupancyService = Depends(get_service),
) -> schemas.Aggregate:
    entrance = OccupancyAggregate(**request.entrance.model_dump(exclude={"available_capacity"}))
    others = [
        OccupancyAggregate(**other.model_dump(exclude={"available_capacity"}))
        for other in request.others
    ]
    derived = service.derive(entrance, others, floor_id=request.floor_id)
    return _aggregate_out(derived, service.building_default_capacity)


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /health for service status."}
