"""
Stops endpoints for Transit API.

Provides stop search and nearby-stop lookup through the transit gateway.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1.shared.errors import gateway_failure
from app.models.transit import (
    GatewayMetaModel,
    NearbyStopModel,
    NearbyStopsResponse,
    StopSearchResponse,
)
from app.services.transit_errors import TransitServiceError
from app.services.trip_planner import TripPlanner, get_trip_planner

router = APIRouter()


@router.get(
    "/stops/search",
    response_model=StopSearchResponse,
    summary="Search for stops by name",
)
async def search_stops(
    query: Annotated[
        str,
        Query(max_length=100, description="Search text for stop name."),
    ] = "",
    lat: Annotated[float | None, Query(description="Bias results near this latitude.")] = None,
    lon: Annotated[float | None, Query(description="Bias results near this longitude.")] = None,
    planner: TripPlanner = Depends(get_trip_planner),
) -> StopSearchResponse:
    """Search for transit stops by name; a blank query returns no results."""
    try:
        results, meta = await planner.search_stops(query, lat, lon)
    except TransitServiceError as exc:
        raise gateway_failure(exc) from exc

    return StopSearchResponse(
        results=results,
        meta=GatewayMetaModel(**meta.to_dict()) if meta else None,
    )


@router.get(
    "/stops/nearby",
    response_model=NearbyStopsResponse,
    summary="List stops near a coordinate",
)
async def nearby_stops(
    lat: Annotated[float, Query(ge=-90, le=90, description="Latitude.")],
    lon: Annotated[float, Query(ge=-180, le=180, description="Longitude.")],
    planner: TripPlanner = Depends(get_trip_planner),
) -> NearbyStopsResponse:
    """Return normalized stops closest to the coordinate."""
    try:
        stops, meta = await planner.nearby_stops(lat, lon)
    except TransitServiceError as exc:
        raise gateway_failure(exc) from exc

    return NearbyStopsResponse(
        results=[
            NearbyStopModel(
                global_stop_id=stop.global_stop_id,
                stop_lat=stop.stop_lat,
                stop_lon=stop.stop_lon,
                stop_name=stop.stop_name,
                distance_meters=stop.distance_meters,
            )
            for stop in stops
        ],
        meta=GatewayMetaModel(**meta.to_dict()),
    )
