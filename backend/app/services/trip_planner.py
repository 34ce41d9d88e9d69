"""Trip planning service built on the transit gateway.

Turns rider selections into upstream queries, normalizes stop payloads and
summarizes plan candidates together with their reliability score.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any

from fastapi import Depends

from app.core.config import Settings, get_settings
from app.models.transit import PlanRequest
from app.services.reliability import (
    ReliabilityScore,
    compute_reliability,
    summarize_leg,
)
from app.services.transit_dto import NearbyStop, TripPlan
from app.services.transit_errors import (
    InvalidTripRequestError,
    TransitServiceError,
    TripNotFoundError,
)
from app.services.transit_gateway import (
    CacheOptions,
    GatewayMeta,
    QueryValue,
    TransitGateway,
    get_transit_gateway,
)
from app.services.transit_mapping import extract_nearby_stops, extract_trip_plans

logger = logging.getLogger(__name__)

PLAN_PATH = "/v3/public/plan"
NEARBY_STOPS_PATH = "/v3/public/nearby_stops"
SEARCH_STOPS_PATH = "/v3/public/search_stops"

MAX_ALTERNATIVES = 2


@dataclass(frozen=True)
class LegSummary:
    mode: str | None
    label: str
    start_time: int | None
    end_time: int | None
    duration: float | None


@dataclass(frozen=True)
class TripSummary:
    start_time: int | None
    end_time: int | None
    duration: float | None
    summary: str
    legs: list[LegSummary]


@dataclass(frozen=True)
class TripPlanResult:
    best: TripSummary
    alternatives: list[TripSummary]
    reliability: ReliabilityScore
    meta: GatewayMeta

    def to_dict(self) -> dict[str, Any]:
        return {
            "best": asdict(self.best),
            "alternatives": [asdict(item) for item in self.alternatives],
            "reliability": self.reliability.to_dict(),
            "meta": self.meta.to_dict(),
        }


@dataclass(slots=True)
class RefreshSummary:
    """Aggregate plan refresh results."""

    results: list[dict[str, Any]] = field(default_factory=list)

    @property
    def refreshed(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {"refreshed": self.refreshed, "results": self.results}


def build_plan_params(
    request: PlanRequest, settings: Settings | None = None
) -> dict[str, QueryValue]:
    """Translate a rider request into Transit plan query parameters.

    Stops are referenced by global id when known, else by coordinates.
    """
    settings = settings or get_settings()
    params: dict[str, QueryValue] = {
        "mode": "transit",
        "should_update_realtime": True,
        "num_result": settings.transit_plan_num_results,
        "max_num_departures": settings.transit_plan_max_departures,
    }

    for prefix, selection in (("from", request.origin), ("to", request.destination)):
        if selection is None:
            continue
        if selection.global_stop_id:
            params[f"{prefix}_global_stop_id"] = selection.global_stop_id
        elif selection.stop_lat is not None and selection.stop_lon is not None:
            params[f"{prefix}_lat"] = selection.stop_lat
            params[f"{prefix}_lon"] = selection.stop_lon

    if request.time_value is not None:
        if request.time_type == "arrive":
            params["arrival_time"] = request.time_value
        else:
            params["leave_time"] = request.time_value

    return params


def _has_endpoint(params: dict[str, QueryValue], prefix: str) -> bool:
    return f"{prefix}_global_stop_id" in params or f"{prefix}_lat" in params


def summarize_plan(plan: TripPlan) -> TripSummary:
    legs = [
        LegSummary(
            mode=leg.leg_mode,
            label=summarize_leg(leg),
            start_time=leg.start_time,
            end_time=leg.end_time,
            duration=leg.duration,
        )
        for leg in plan.legs
    ]
    return TripSummary(
        start_time=plan.start_time,
        end_time=plan.end_time,
        duration=plan.duration,
        summary=" / ".join(leg.label for leg in legs),
        legs=legs,
    )


class TripPlanner:
    """Stop lookup and trip planning over the Transit API."""

    def __init__(self, gateway: TransitGateway, settings: Settings | None = None):
        self._gateway = gateway
        self._settings = settings or get_settings()

    async def search_stops(
        self,
        query: str,
        lat: float | None = None,
        lon: float | None = None,
    ) -> tuple[list[Any], GatewayMeta | None]:
        """Search stops by name; blank queries short-circuit without a call."""
        query = query.strip()
        if not query:
            return [], None

        result = await self._gateway.fetch_json(
            SEARCH_STOPS_PATH,
            {
                "query": query,
                "lat": lat,
                "lon": lon,
                "max_num_results": self._settings.transit_stop_max_results,
            },
            CacheOptions(ttl_seconds=self._settings.transit_stop_search_cache_ttl_seconds),
        )
        data = result.data if isinstance(result.data, dict) else {}
        results = data.get("results")
        return (results if isinstance(results, list) else []), result.meta

    async def nearby_stops(
        self, lat: float, lon: float
    ) -> tuple[list[NearbyStop], GatewayMeta]:
        result = await self._gateway.fetch_json(
            NEARBY_STOPS_PATH,
            {
                "lat": lat,
                "lon": lon,
                "max_num_results": self._settings.transit_stop_max_results,
            },
            CacheOptions(ttl_seconds=self._settings.transit_nearby_cache_ttl_seconds),
        )
        return extract_nearby_stops(result.data), result.meta

    async def plan_trip(self, request: PlanRequest) -> TripPlanResult:
        """Plan a trip and score the reliability of the candidates.

        Raises:
            InvalidTripRequestError: origin or destination missing.
            TripNotFoundError: upstream returned no itineraries.
            TransitServiceError: upstream failed and nothing was cached.
        """
        params = build_plan_params(request, self._settings)
        if not _has_endpoint(params, "from"):
            raise InvalidTripRequestError("Missing origin selection.")
        if not _has_endpoint(params, "to"):
            raise InvalidTripRequestError("Missing destination selection.")

        result = await self._gateway.fetch_json(
            PLAN_PATH,
            params,
            CacheOptions(ttl_seconds=self._settings.transit_plan_cache_ttl_seconds),
        )
        plans = extract_trip_plans(result.data)
        if not plans:
            raise TripNotFoundError("No routes found for that request.")

        ranked = sorted(plans, key=lambda plan: plan.duration or 0)
        return TripPlanResult(
            best=summarize_plan(ranked[0]),
            alternatives=[summarize_plan(plan) for plan in ranked[1 : 1 + MAX_ALTERNATIVES]],
            reliability=compute_reliability(plans),
            meta=result.meta,
        )

    async def refresh_plans(self, requests: list[PlanRequest]) -> RefreshSummary:
        """Re-fetch plans one by one so their cache entries stay warm."""
        summary = RefreshSummary()
        for request in requests:
            params = build_plan_params(request, self._settings)
            try:
                await self._gateway.fetch_json(
                    PLAN_PATH,
                    params,
                    CacheOptions(
                        ttl_seconds=self._settings.transit_plan_cache_ttl_seconds
                    ),
                )
            except TransitServiceError as exc:
                logger.warning("Plan refresh failed for %s: %s", params, exc)
                summary.results.append({"ok": False, "params": params, "error": str(exc)})
            else:
                summary.results.append({"ok": True, "params": params})
        logger.info("Refreshed %d plan cache entries", summary.refreshed)
        return summary


def get_trip_planner(
    gateway: TransitGateway = Depends(get_transit_gateway),
) -> TripPlanner:
    """Instantiate a planner per request."""
    return TripPlanner(gateway)
