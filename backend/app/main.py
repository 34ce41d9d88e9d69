from contextlib import asynccontextmanager
import logging

from uuid import uuid4

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.api.metrics import router as metrics_router
from app.api.v1.routes import router as api_router
from app.core.config import get_settings
from app.core.telemetry import (
    configure_opentelemetry,
    instrument_fastapi,
    instrument_httpx,
)
from app.services.mapbox import MapboxClient
from app.services.transit_gateway import TransitGateway
from app.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)
REQUEST_ID_HEADER = "X-Request-Id"


def _configure_logging(log_level: str) -> None:
    """
    Apply LOG_LEVEL to the root logger and quiet the HTTP client stack.

    httpx/httpcore log every request line at INFO; retries and failures are
    already logged by the gateway, so they stay at WARNING.
    """
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(log_level.upper())
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)


def _install_request_id_middleware(app: FastAPI) -> None:
    """Ensure each response includes a stable X-Request-Id header."""

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER, str(uuid4()))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the shared HTTP client, cache, gateway and Mapbox client.

    A missing TRANSIT_API_KEY raises TransitConfigurationError here, so the
    service refuses to start rather than failing per request.
    """
    settings = get_settings()
    configure_opentelemetry(settings)

    client = httpx.AsyncClient(
        timeout=settings.transit_request_timeout_seconds,
        headers={"User-Agent": "transit-gateway/0.1"},
    )
    instrument_httpx(client, enabled=settings.otel_enabled)
    try:
        app.state.transit_gateway = TransitGateway(settings, TTLCache(), client)
        app.state.mapbox_client = MapboxClient(settings, client)
        logger.info("Transit gateway ready for %s", settings.transit_api_base_url)
        yield
    finally:
        await client.aclose()


def create_app() -> FastAPI:
    """Application factory for FastAPI."""
    settings = get_settings()
    app = FastAPI(
        title="Transit Gateway API",
        description="Caching, retrying gateway to the Transit API with trip reliability scoring.",
        version="0.1.0",
        lifespan=lifespan,
    )

    _configure_logging(settings.log_level)

    instrument_fastapi(app, enabled=settings.otel_enabled)
    _install_request_id_middleware(app)

    allow_origins = settings.cors_allow_origins
    allow_origin_regex = settings.cors_allow_origin_regex
    if allow_origins or allow_origin_regex:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allow_origins,
            allow_origin_regex=allow_origin_regex,
            allow_credentials=bool(allow_origins),
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(metrics_router)
    app.include_router(api_router, prefix="/api/v1")

    return app


app = create_app()
