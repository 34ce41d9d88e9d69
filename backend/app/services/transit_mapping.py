"""Pure mapping utilities for Transit API payloads.

Mappers accept any JSON-like value and never raise; malformed fields fall
back to the defaults documented on the DTOs.
"""

from __future__ import annotations

import math
from typing import Any

from app.services.transit_dto import (
    GeocodeResult,
    NearbyStop,
    ScheduledDeparture,
    ServiceAlert,
    TransitRoute,
    TripLeg,
    TripPlan,
)

ALERT_TEXT_FIELDS = (
    "header_text",
    "description_text",
    "alert_text",
    "text",
    "summary",
)


class DataMapper:
    """Fallible lookups over untyped upstream JSON."""

    @staticmethod
    def as_dict(value: Any) -> dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @staticmethod
    def as_list(value: Any) -> list[Any]:
        return value if isinstance(value, list) else []

    @staticmethod
    def safe_get(data: dict[str, Any] | None, *keys: str, default: Any = None) -> Any:
        """Return the first key present with a non-None value."""
        if not data:
            return default
        for key in keys:
            value = data.get(key)
            if value is not None:
                return value
        return default

    @staticmethod
    def finite_number(value: Any) -> float | None:
        """Accept real JSON numbers only; strings and booleans are rejected."""
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        try:
            finite = math.isfinite(value)
        except OverflowError:
            # ints beyond float range
            return None
        return value if finite else None

    @staticmethod
    def parse_float(value: Any) -> float | None:
        """Lenient float parsing for coordinates that may arrive as strings."""
        if value is None or isinstance(value, bool):
            return None
        try:
            parsed = float(str(value).strip())
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None

    @staticmethod
    def to_int(value: Any) -> int | None:
        number = DataMapper.finite_number(value)
        return int(number) if number is not None else None

    @staticmethod
    def to_text(value: Any) -> str | None:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value)
        return text if text.strip() else None


def map_service_alert(data: Any) -> ServiceAlert:
    """Map a route alert, keeping the first non-empty text field."""
    payload = DataMapper.as_dict(data)
    for key in ALERT_TEXT_FIELDS:
        text = DataMapper.to_text(payload.get(key))
        if text is not None:
            return ServiceAlert(text=text)
    return ServiceAlert()


def map_departure(data: Any) -> ScheduledDeparture:
    payload = DataMapper.as_dict(data)
    return ScheduledDeparture(
        is_real_time=bool(payload.get("is_real_time")),
        departure_time=DataMapper.to_int(payload.get("departure_time")),
    )


def map_route(data: Any) -> TransitRoute:
    payload = DataMapper.as_dict(data)
    return TransitRoute(
        route_short_name=DataMapper.to_text(payload.get("route_short_name")),
        route_long_name=DataMapper.to_text(payload.get("route_long_name")),
        route_mode_name=DataMapper.to_text(payload.get("route_mode_name")),
        real_time_route_id=DataMapper.to_text(payload.get("real_time_route_id")),
        alerts=[map_service_alert(item) for item in DataMapper.as_list(payload.get("alerts"))],
    )


def map_trip_leg(data: Any) -> TripLeg:
    payload = DataMapper.as_dict(data)
    return TripLeg(
        leg_mode=DataMapper.to_text(payload.get("leg_mode")),
        start_time=DataMapper.to_int(payload.get("start_time")),
        end_time=DataMapper.to_int(payload.get("end_time")),
        duration=DataMapper.finite_number(payload.get("duration")),
        routes=[map_route(item) for item in DataMapper.as_list(payload.get("routes"))],
        departures=[
            map_departure(item)
            for item in DataMapper.as_list(payload.get("departures"))
        ],
    )


def map_trip_plan(data: Any) -> TripPlan:
    payload = DataMapper.as_dict(data)
    return TripPlan(
        duration=DataMapper.finite_number(payload.get("duration")),
        start_time=DataMapper.to_int(payload.get("start_time")),
        end_time=DataMapper.to_int(payload.get("end_time")),
        legs=[map_trip_leg(item) for item in DataMapper.as_list(payload.get("legs"))],
    )


def extract_trip_plans(payload: Any) -> list[TripPlan]:
    """Map the ``results`` list of a plan response."""
    results = DataMapper.as_list(DataMapper.as_dict(payload).get("results"))
    return [map_trip_plan(item) for item in results]


def map_nearby_stop(data: Any) -> NearbyStop | None:
    """Normalize a nearby-stop item; items without coordinates map to None.

    Items may wrap the stop in a nested ``stop`` object or be flat.
    """
    item = DataMapper.as_dict(data)
    candidate = DataMapper.as_dict(item.get("stop")) or item

    latitude = DataMapper.parse_float(DataMapper.safe_get(candidate, "stop_lat", "lat"))
    longitude = DataMapper.parse_float(DataMapper.safe_get(candidate, "stop_lon", "lon"))
    if latitude is None or longitude is None:
        return None

    distance = DataMapper.parse_float(
        DataMapper.safe_get(candidate, "distance", "distance_meters")
    )
    if distance is None:
        distance = DataMapper.parse_float(
            DataMapper.safe_get(item, "distance", "distance_meters")
        )

    return NearbyStop(
        stop_lat=latitude,
        stop_lon=longitude,
        stop_name=str(DataMapper.safe_get(candidate, "stop_name", "name", default="Stop")),
        global_stop_id=DataMapper.to_text(candidate.get("global_stop_id")),
        distance_meters=distance,
    )


def extract_nearby_stops(payload: Any) -> list[NearbyStop]:
    """Read ``stops`` (or ``results``) and keep the items with coordinates."""
    data = DataMapper.as_dict(payload)
    raw_stops = data.get("stops")
    if not isinstance(raw_stops, list):
        raw_stops = DataMapper.as_list(data.get("results"))
    return [stop for stop in (map_nearby_stop(item) for item in raw_stops) if stop]


def map_geocode_feature(data: Any, fallback_label: str) -> GeocodeResult | None:
    """Normalize a Mapbox feature; ``center`` is ``[lon, lat]``.

    Features without a usable center map to None.
    """
    feature = DataMapper.as_dict(data)
    center = DataMapper.as_list(feature.get("center"))
    if len(center) < 2:
        return None
    longitude = DataMapper.parse_float(center[0])
    latitude = DataMapper.parse_float(center[1])
    if latitude is None or longitude is None:
        return None
    label = DataMapper.safe_get(feature, "place_name", "text", default=fallback_label)
    return GeocodeResult(label=str(label), lat=latitude, lon=longitude)


def extract_geocode_results(payload: Any, query: str) -> list[GeocodeResult]:
    features = DataMapper.as_list(DataMapper.as_dict(payload).get("features"))
    return [
        result
        for result in (map_geocode_feature(feature, query) for feature in features)
        if result
    ]


__all__ = [
    "ALERT_TEXT_FIELDS",
    "DataMapper",
    "extract_geocode_results",
    "extract_nearby_stops",
    "extract_trip_plans",
    "map_departure",
    "map_geocode_feature",
    "map_nearby_stop",
    "map_route",
    "map_service_alert",
    "map_trip_leg",
    "map_trip_plan",
]
