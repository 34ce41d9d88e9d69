"""
Mapbox proxy endpoints.

Route geometry and place search for the trip planner's map, keeping the
Mapbox token server-side.
"""

from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.v1.shared.errors import gateway_failure
from app.models.mapbox import (
    GeocodeResponse,
    GeocodeResultModel,
    RouteRequest,
    RouteResponse,
)
from app.services.mapbox import MapboxClient, get_mapbox_client
from app.services.transit_errors import InvalidRouteRequestError, TransitServiceError

router = APIRouter()


@router.post(
    "/route",
    response_model=RouteResponse,
    summary="Route geometry between waypoints",
)
async def route(
    payload: RouteRequest,
    mapbox: MapboxClient = Depends(get_mapbox_client),
) -> RouteResponse:
    try:
        geometry = await mapbox.route_geometry(payload.coordinates, payload.profile)
    except InvalidRouteRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except TransitServiceError as exc:
        raise gateway_failure(exc) from exc

    return RouteResponse(geometry=geometry if isinstance(geometry, dict) else None)


@router.get(
    "/geocode",
    response_model=GeocodeResponse,
    summary="Search places by text",
)
async def geocode(
    query: Annotated[
        str,
        Query(max_length=200, description="Address or place name."),
    ] = "",
    mapbox: MapboxClient = Depends(get_mapbox_client),
) -> GeocodeResponse:
    """Return up to a few matching places; a blank query returns none."""
    try:
        results = await mapbox.geocode(query)
    except TransitServiceError as exc:
        raise gateway_failure(exc) from exc

    return GeocodeResponse(
        results=[GeocodeResultModel(**asdict(result)) for result in results]
    )
