"""
Mapbox directions and geocoding proxy.

Each call is a single attempt through ``fetch_once`` with no caching; the
access token travels as a query parameter, as Mapbox expects. A missing
MAPBOX_TOKEN fails the individual request rather than startup, since the
map features are optional for the trip planner.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any
from urllib.parse import quote

import httpx
from fastapi import Request

from app.core.config import Settings
from app.services.transit_dto import GeocodeResult
from app.services.transit_errors import (
    InvalidRouteRequestError,
    TransitConfigurationError,
    TransitUpstreamError,
)
from app.services.transit_fetch import UpstreamFailure, fetch_once
from app.services.transit_gateway import QueryValue, build_query_params
from app.services.transit_mapping import DataMapper, extract_geocode_results

logger = logging.getLogger(__name__)

SERVICE_NAME = "Mapbox"
DIRECTIONS_PATH = "/directions/v5/mapbox"
GEOCODING_PATH = "/geocoding/v5/mapbox.places"

Coordinate = tuple[float, float]


class MapboxClient:
    """Thin Mapbox client sharing the app's httpx connection pool."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient) -> None:
        self._settings = settings
        self._client = client
        self._base_url = settings.mapbox_api_base_url.rstrip("/")

    def _token(self) -> str:
        token = self._settings.mapbox_token
        if token is None or not token.get_secret_value():
            logger.error("MAPBOX_TOKEN is not configured")
            raise TransitConfigurationError("Missing MAPBOX_TOKEN")
        return token.get_secret_value()

    async def route_geometry(
        self, coordinates: Sequence[Coordinate], profile: str = "driving"
    ) -> Any:
        """Return the GeoJSON geometry of the first route, or None.

        ``coordinates`` are ``(lon, lat)`` pairs in travel order.

        Raises:
            TransitConfigurationError: no MAPBOX_TOKEN.
            InvalidRouteRequestError: fewer than two coordinates.
            TransitServiceError: Mapbox failed or was unreachable.
        """
        token = self._token()
        if len(coordinates) < 2:
            raise InvalidRouteRequestError("At least two coordinates are required.")

        waypoints = ";".join(f"{lon},{lat}" for lon, lat in coordinates)
        data = await self._get(
            f"{DIRECTIONS_PATH}/{profile}/{waypoints}",
            {
                "geometries": "geojson",
                "overview": "full",
                "steps": False,
                "access_token": token,
            },
            endpoint=f"{DIRECTIONS_PATH}/{profile}",
            failure_message="Mapbox route failed",
        )
        routes = DataMapper.as_list(DataMapper.as_dict(data).get("routes"))
        if not routes:
            return None
        return DataMapper.as_dict(routes[0]).get("geometry")

    async def geocode(self, query: str) -> list[GeocodeResult]:
        """Forward-geocode ``query``; blank queries short-circuit without a call."""
        query = query.strip()
        if not query:
            return []

        settings = self._settings
        data = await self._get(
            f"{GEOCODING_PATH}/{quote(query, safe='')}.json",
            {
                "access_token": self._token(),
                "limit": settings.mapbox_geocode_limit,
                "autocomplete": True,
                "types": settings.mapbox_geocode_types,
                "country": settings.mapbox_geocode_country,
                "proximity": settings.mapbox_geocode_proximity,
                "bbox": settings.mapbox_geocode_bbox,
            },
            endpoint=GEOCODING_PATH,
            failure_message="Mapbox geocoding failed",
        )
        return extract_geocode_results(data, query)

    async def _get(
        self,
        path: str,
        params: Mapping[str, QueryValue],
        *,
        endpoint: str,
        failure_message: str,
    ) -> Any:
        outcome = await fetch_once(
            self._client,
            f"{self._base_url}{path}",
            {},
            self._settings.mapbox_request_timeout_seconds,
            build_query_params(params),
            service=SERVICE_NAME,
            endpoint=endpoint,
        )
        if outcome.ok:
            return outcome.data

        logger.warning("Mapbox request to %s failed: %s", endpoint, outcome.message)
        if isinstance(outcome, UpstreamFailure):
            # Upstream status is forwarded; the body never is.
            raise TransitUpstreamError(outcome.status_code, failure_message)
        raise outcome.to_exception()


def get_mapbox_client(request: Request) -> MapboxClient:
    """FastAPI dependency hook returning the client built at startup."""
    return request.app.state.mapbox_client


__all__ = ["MapboxClient", "get_mapbox_client"]
