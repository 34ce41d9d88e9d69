"""
Mapbox proxy Pydantic models.

Coordinates are ``[lon, lat]`` pairs, matching Mapbox's own ordering.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field

Longitude = Annotated[float, Field(ge=-180, le=180)]
Latitude = Annotated[float, Field(ge=-90, le=90)]


class RouteRequest(BaseModel):
    """Directions request body."""

    profile: Literal["driving", "driving-traffic", "walking", "cycling"] = "driving"
    coordinates: list[tuple[Longitude, Latitude]] = Field(
        default_factory=list,
        description="Waypoints in travel order; at least two are required.",
    )


class RouteResponse(BaseModel):
    geometry: dict[str, Any] | None = Field(
        None, description="GeoJSON geometry of the first route"
    )


class GeocodeResultModel(BaseModel):
    label: str
    lat: float
    lon: float


class GeocodeResponse(BaseModel):
    results: list[GeocodeResultModel] = Field(default_factory=list)
