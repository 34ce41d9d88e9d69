from fastapi import APIRouter

from app.api.v1.endpoints.health import router as health_router
from app.api.v1.endpoints.mapbox import router as mapbox_router
from app.api.v1.endpoints.transit import router as transit_router

router = APIRouter()
router.include_router(health_router, tags=["meta"])
router.include_router(transit_router, prefix="/transit", tags=["transit"])
router.include_router(mapbox_router, prefix="/mapbox", tags=["mapbox"])
