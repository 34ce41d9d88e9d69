"""Data transfer objects for Transit API payloads.

Every field is optional upstream; defaults below are what a missing or
malformed value maps to.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class ServiceAlert:
    """Route alert; ``text`` is the first non-empty text field, or None."""

    text: str | None = None


@dataclass(frozen=True)
class ScheduledDeparture:
    """One departure offered for a transit leg."""

    is_real_time: bool = False
    departure_time: int | None = None


@dataclass(frozen=True)
class TransitRoute:
    """Route serving a transit leg."""

    route_short_name: str | None = None
    route_long_name: str | None = None
    route_mode_name: str | None = None
    real_time_route_id: str | None = None
    alerts: List[ServiceAlert] = field(default_factory=list)


@dataclass(frozen=True)
class TripLeg:
    """Single-mode segment of a trip plan (walk, transit, bike, ...)."""

    leg_mode: str | None = None
    start_time: int | None = None
    end_time: int | None = None
    duration: float | None = None
    routes: List[TransitRoute] = field(default_factory=list)
    departures: List[ScheduledDeparture] = field(default_factory=list)


@dataclass(frozen=True)
class TripPlan:
    """Candidate itinerary returned by the plan endpoint."""

    duration: float | None = None
    start_time: int | None = None
    end_time: int | None = None
    legs: List[TripLeg] = field(default_factory=list)


@dataclass(frozen=True)
class NearbyStop:
    """Normalized stop near a coordinate."""

    stop_lat: float
    stop_lon: float
    stop_name: str = "Stop"
    global_stop_id: str | None = None
    distance_meters: float | None = None


@dataclass(frozen=True)
class GeocodeResult:
    """Place matched by a geocoding query."""

    label: str
    lat: float
    lon: float


__all__ = [
    "ServiceAlert",
    "ScheduledDeparture",
    "TransitRoute",
    "TripLeg",
    "TripPlan",
    "NearbyStop",
    "GeocodeResult",
]
