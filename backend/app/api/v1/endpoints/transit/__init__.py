"""
Transit API endpoints package.

Thin adapters over the trip planner: stop lookup and trip planning.
"""

from fastapi import APIRouter

from app.api.v1.endpoints.transit.plans import router as plans_router
from app.api.v1.endpoints.transit.stops import router as stops_router

router = APIRouter()
router.include_router(stops_router)
router.include_router(plans_router)
