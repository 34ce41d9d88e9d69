"""Application configuration.

Environment variables are loaded from .env file and can be overridden.
All settings have sensible defaults for local development, except the
Transit API key which must be supplied per deployment.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Annotated, Any

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


def _split_list(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return []
        if value.startswith("["):
            return [str(item).strip() for item in json.loads(value) if str(item).strip()]
        return [item.strip() for item in value.split(",") if item.strip()]
    return list(value) if value is not None else []


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ==========================================================================
    # Runtime
    # ==========================================================================

    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Deployment environment: 'development', 'staging', or 'production'.",
    )
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # ==========================================================================
    # Transit upstream
    # ==========================================================================

    transit_api_base_url: str = Field(
        default="https://external.transitapp.com", alias="TRANSIT_API_BASE_URL"
    )
    transit_api_key: SecretStr | None = Field(
        default=None,
        alias="TRANSIT_API_KEY",
        description="Per-deployment credential attached to every upstream call.",
    )
    transit_api_key_headers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["apiKey", "api-key", "x-api-key"],
        alias="TRANSIT_API_KEY_HEADERS",
    )
    transit_request_timeout_seconds: float = Field(
        default=10.0, alias="TRANSIT_REQUEST_TIMEOUT_SECONDS", gt=0.0
    )
    transit_max_retries: int = Field(default=2, alias="TRANSIT_MAX_RETRIES", ge=0)
    transit_retry_backoff_seconds: float = Field(
        default=0.15, alias="TRANSIT_RETRY_BACKOFF_SECONDS", ge=0.0
    )

    # ==========================================================================
    # Cache TTLs (seconds)
    # ==========================================================================

    # Trip plans carry real-time departures: short TTL
    transit_plan_cache_ttl_seconds: float = Field(
        default=60, alias="TRANSIT_PLAN_CACHE_TTL_SECONDS", ge=0
    )
    transit_stop_search_cache_ttl_seconds: float = Field(
        default=300, alias="TRANSIT_STOP_SEARCH_CACHE_TTL_SECONDS", ge=0
    )
    transit_nearby_cache_ttl_seconds: float = Field(
        default=300, alias="TRANSIT_NEARBY_CACHE_TTL_SECONDS", ge=0
    )

    # ==========================================================================
    # Upstream query tuning
    # ==========================================================================

    transit_plan_num_results: int = Field(
        default=3, alias="TRANSIT_PLAN_NUM_RESULTS", ge=1
    )
    transit_plan_max_departures: int = Field(
        default=5, alias="TRANSIT_PLAN_MAX_DEPARTURES", ge=1
    )
    transit_stop_max_results: int = Field(
        default=6, alias="TRANSIT_STOP_MAX_RESULTS", ge=1
    )

    # ==========================================================================
    # Mapbox (directions and geocoding proxy)
    # ==========================================================================

    mapbox_token: SecretStr | None = Field(
        default=None,
        alias="MAPBOX_TOKEN",
        description="Access token; the Mapbox endpoints answer 500 without it.",
    )
    mapbox_api_base_url: str = Field(
        default="https://api.mapbox.com", alias="MAPBOX_API_BASE_URL"
    )
    mapbox_request_timeout_seconds: float = Field(
        default=10.0, alias="MAPBOX_REQUEST_TIMEOUT_SECONDS", gt=0.0
    )
    mapbox_geocode_limit: int = Field(default=3, alias="MAPBOX_GEOCODE_LIMIT", ge=1)
    mapbox_geocode_types: str | None = Field(
        default="address,place,poi", alias="MAPBOX_GEOCODE_TYPES"
    )
    mapbox_geocode_country: str | None = Field(
        default="ca", alias="MAPBOX_GEOCODE_COUNTRY"
    )
    # lon,lat biasing point and minLon,minLat,maxLon,maxLat box (Toronto)
    mapbox_geocode_proximity: str | None = Field(
        default="-79.3832,43.6532", alias="MAPBOX_GEOCODE_PROXIMITY"
    )
    mapbox_geocode_bbox: str | None = Field(
        default="-79.6393,43.5810,-79.1153,43.8555", alias="MAPBOX_GEOCODE_BBOX"
    )

    # ==========================================================================
    # CORS
    # ==========================================================================

    cors_allow_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "http://localhost:4321",
            "http://localhost:3000",
            "http://127.0.0.1:4321",
            "http://127.0.0.1:3000",
        ],
        alias="CORS_ALLOW_ORIGINS",
    )
    cors_allow_origin_regex: str | None = Field(
        default=None, alias="CORS_ALLOW_ORIGIN_REGEX"
    )

    # ==========================================================================
    # OpenTelemetry (optional)
    # ==========================================================================

    otel_enabled: bool = Field(default=False, alias="OTEL_ENABLED")
    otel_service_name: str = Field(
        default="transit-gateway", alias="OTEL_SERVICE_NAME"
    )
    otel_service_version: str = Field(default="0.1.0", alias="OTEL_SERVICE_VERSION")
    otel_exporter_otlp_endpoint: str = Field(
        default="http://jaeger:4317", alias="OTEL_EXPORTER_OTLP_ENDPOINT"
    )
    otel_exporter_otlp_headers: str | None = Field(
        default=None, alias="OTEL_EXPORTER_OTLP_HEADERS"
    )

    # ==========================================================================
    # Pydantic Settings Config
    # ==========================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # Validators
    # ==========================================================================

    @field_validator("cors_allow_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: Any) -> list[str]:
        """Parse comma-separated CORS origins, rejecting wildcard '*'."""
        parsed = _split_list(value)
        if "*" in parsed:
            raise ValueError(
                "Wildcard CORS origin '*' is not allowed. "
                "Specify explicit origins like 'http://localhost:3000'."
            )
        return parsed

    @field_validator("transit_api_key_headers", mode="before")
    @classmethod
    def parse_api_key_headers(cls, value: Any) -> list[str]:
        """Parse comma-separated header names; at least one is required."""
        parsed = _split_list(value)
        if not parsed:
            raise ValueError("TRANSIT_API_KEY_HEADERS must name at least one header.")
        return parsed

    @field_validator("transit_api_key", "mapbox_token", mode="before")
    @classmethod
    def blank_key_is_missing(cls, value: Any) -> Any:
        """Treat an empty credential the same as an unset one."""
        if isinstance(value, str) and not value.strip():
            return None
        return value


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
