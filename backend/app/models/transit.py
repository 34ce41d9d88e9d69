"""
Transit API Pydantic models.

Request payloads for trip planning and the response schema exposed by the
transit endpoints.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class StopSelection(BaseModel):
    """Origin or destination picked by the rider."""

    global_stop_id: str | None = Field(None, description="Transit global stop id")
    stop_lat: float | None = Field(None, description="Stop latitude")
    stop_lon: float | None = Field(None, description="Stop longitude")
    stop_name: str | None = Field(None, description="Display name, not sent upstream")


class PlanRequest(BaseModel):
    """Trip planning request body."""

    model_config = ConfigDict(populate_by_name=True)

    origin: StopSelection | None = Field(None, alias="from")
    destination: StopSelection | None = Field(None, alias="to")
    time_type: Literal["leave", "arrive"] = Field("leave", alias="timeType")
    time_value: int | None = Field(
        None,
        alias="timeValue",
        description="Unix timestamp for the leave/arrive time; omit for now.",
    )


class PlanRefreshRequest(BaseModel):
    """Batch of plan requests to re-fetch into the cache."""

    requests: list[PlanRequest] = Field(default_factory=list)


class GatewayMetaModel(BaseModel):
    """Cache provenance of the upstream data behind a response."""

    cached: bool = False
    stale: bool = False
    error: str | None = None


class StopSearchResponse(BaseModel):
    results: list[Any] = Field(default_factory=list, description="Raw upstream stops")
    meta: GatewayMetaModel | None = None


class NearbyStopModel(BaseModel):
    global_stop_id: str | None = None
    stop_lat: float
    stop_lon: float
    stop_name: str
    distance_meters: float | None = None


class NearbyStopsResponse(BaseModel):
    results: list[NearbyStopModel] = Field(default_factory=list)
    meta: GatewayMetaModel | None = None


class LegSummaryModel(BaseModel):
    mode: str | None = None
    label: str
    start_time: int | None = None
    end_time: int | None = None
    duration: float | None = None


class TripSummaryModel(BaseModel):
    start_time: int | None = None
    end_time: int | None = None
    duration: float | None = None
    summary: str = Field(..., description="Leg labels joined with ' / '")
    legs: list[LegSummaryModel] = Field(default_factory=list)


class ReliabilityModel(BaseModel):
    score: int = Field(..., ge=0, le=100)
    level: Literal["Low", "Medium", "High"]
    variability: float = Field(..., ge=0)
    real_time_rate: float = Field(..., ge=0, le=1)
    alert_count: int = Field(..., ge=0)
    reasons: list[str] = Field(default_factory=list)


class TripPlanResponse(BaseModel):
    best: TripSummaryModel
    alternatives: list[TripSummaryModel] = Field(default_factory=list)
    reliability: ReliabilityModel
    meta: GatewayMetaModel


class PlanRefreshResult(BaseModel):
    ok: bool
    params: dict[str, Any]
    error: str | None = None


class PlanRefreshResponse(BaseModel):
    refreshed: int
    results: list[PlanRefreshResult] = Field(default_factory=list)
