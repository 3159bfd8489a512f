"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.records import Granularity, parse_timestamp


class ReadingPoint(BaseModel):
    """One entry of a zone's time series, as returned by the hourly feed."""

    timestamp: str = Field(..., description="ISO-8601 UTC timestamp.")
    total_occupancy: float = Field(..., description="Signed; drift can push it below zero.")
    occupancy_percentage: float
    max_capacity: Optional[float] = None

    @field_validator("timestamp")
    @classmethod
    def _check_timestamp(cls, value: str) -> str:
        parse_timestamp(value)
        return value


class LiveReading(ReadingPoint):
    """Flat live-feed item with floor and zone inlined."""

    floor_id: str
    zone_name: str


class HistoricalSeries(BaseModel):
    """Historical feed item: one zone on one floor with its readings."""

    floor_id: str
    zone_name: str
    data: List[ReadingPoint] = Field(default_factory=list)


class PeakRequest(BaseModel):
    historical: List[HistoricalSeries] = Field(default_factory=list)
    live: List[LiveReading] = Field(default_factory=list)


class Aggregate(BaseModel):
    """Rolled-up occupancy for one floor or zone."""

    model_config = ConfigDict(from_attributes=True)

    key: str
    total_occupancy: float = 0.0
    peak_occupancy: float = 0.0
    total_percentage: float = 0.0
    sample_count: int = Field(0, ge=0)
    avg_occupancy_percentage: float = 0.0
    max_capacity: Optional[float] = None
    available_capacity: Optional[float] = Field(
        default=None, description="Capacity minus occupancy, never below zero."
    )


class BuildingAggregate(Aggregate):
    total_max_capacity: float
    floor_breakdown: Dict[str, Aggregate] = Field(default_factory=dict)
    entrance_count: Optional[float] = Field(
        default=None, description="Live entrance counter with negative drift clamped to zero."
    )


class DerivedFloorRequest(BaseModel):
    entrance: Aggregate
    others: List[Aggregate] = Field(default_factory=list)
    floor_id: Optional[str] = None


class ReconciledPeak(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    value: float
    is_live: bool
    hour_utc: Optional[int] = Field(default=None, ge=0, le=23)
    local_hour: Optional[int] = Field(default=None, ge=0, le=23)
    local_hour_label: str = ""
    max_capacity: float
    granularity: Granularity


class PeakReport(BaseModel):
    building: ReconciledPeak
    floors: Dict[str, ReconciledPeak] = Field(default_factory=dict)
    zones: Dict[str, ReconciledPeak] = Field(default_factory=dict)


class TrendPoint(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    timestamp: str
    average_occupancy_percentage: float
    peak_occupancy: float
    total_occupancy: float
    sample_count: int = Field(..., ge=0)


class HourlyTotals(BaseModel):
    utc_offset_hours: int
    totals: List[Optional[float]] = Field(..., min_length=24, max_length=24)
