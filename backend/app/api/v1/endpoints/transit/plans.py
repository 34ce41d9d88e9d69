"""
Trip planning endpoints for Transit API.

Plans a trip with a reliability score and re-warms cached plans on demand.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.shared.errors import gateway_failure
from app.models.transit import (
    PlanRefreshRequest,
    PlanRefreshResponse,
    PlanRequest,
    TripPlanResponse,
)
from app.services.transit_errors import (
    InvalidTripRequestError,
    TransitServiceError,
    TripNotFoundError,
)
from app.services.trip_planner import TripPlanner, get_trip_planner

router = APIRouter()


@router.post(
    "/plan",
    response_model=TripPlanResponse,
    summary="Plan a trip between two stops",
)
async def plan_trip(
    payload: PlanRequest,
    planner: TripPlanner = Depends(get_trip_planner),
) -> TripPlanResponse:
    """Return the fastest itinerary, alternatives and a reliability score."""
    try:
        result = await planner.plan_trip(payload)
    except InvalidTripRequestError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except TripNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)
        ) from exc
    except TransitServiceError as exc:
        raise gateway_failure(exc, status_code=status.HTTP_502_BAD_GATEWAY) from exc

    return TripPlanResponse.model_validate(result.to_dict())


@router.post(
    "/plan/refresh",
    response_model=PlanRefreshResponse,
    summary="Re-fetch cached trip plans",
)
async def refresh_plans(
    payload: PlanRefreshRequest,
    planner: TripPlanner = Depends(get_trip_planner),
) -> PlanRefreshResponse:
    """Refresh each requested plan; failures are reported per request."""
    summary = await planner.refresh_plans(payload.requests)
    return PlanRefreshResponse.model_validate(summary.to_dict())
