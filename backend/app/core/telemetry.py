"""OpenTelemetry configuration for the gateway and its Transit API calls."""

from __future__ import annotations

import logging
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.propagate import inject
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from app.core.config import Settings

logger = logging.getLogger(__name__)


def configure_opentelemetry(settings: Settings) -> bool:
    """Install an OTLP-exporting tracer provider when tracing is enabled.

    Returns True when a provider was installed. Exporter failures are logged
    and the service keeps running untraced.
    """
    if not settings.otel_enabled:
        logger.info("OpenTelemetry tracing is disabled")
        return False

    try:
        resource = Resource.create(
            {
                "service.name": settings.otel_service_name,
                "service.version": settings.otel_service_version,
                "service.namespace": "transit-gateway",
            }
        )
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(
            BatchSpanProcessor(
                OTLPSpanExporter(
                    endpoint=settings.otel_exporter_otlp_endpoint,
                    headers=settings.otel_exporter_otlp_headers,
                )
            )
        )
        trace.set_tracer_provider(tracer_provider)
    except Exception as exc:
        logger.warning("Failed to configure OpenTelemetry: %s", exc)
        return False

    logger.info(
        "OpenTelemetry configured for '%s' (OTLP endpoint %s)",
        settings.otel_service_name,
        settings.otel_exporter_otlp_endpoint,
    )
    return True


def instrument_fastapi(app: Any, enabled: bool = False) -> None:
    """Instrument FastAPI application for tracing."""
    if not enabled:
        return

    try:
        FastAPIInstrumentor.instrument_app(app)
        logger.info("FastAPI instrumentation enabled")
    except Exception as exc:
        logger.warning("Failed to instrument FastAPI: %s", exc)


def instrument_httpx(client: Any, enabled: bool = False) -> None:
    """Instrument the shared Transit API client for outbound spans."""
    if not enabled:
        return

    try:
        HTTPXClientInstrumentor.instrument_client(client)
        logger.info("HTTPX client instrumentation enabled")
    except Exception as exc:
        logger.warning("Failed to instrument HTTPX: %s", exc)


def add_traceparent_header(headers: dict[str, str]) -> dict[str, str]:
    """Return a copy of ``headers`` carrying the active trace context.

    Without an active span the headers come back unchanged.
    """
    headers_copy = headers.copy()
    inject(headers_copy)
    return headers_copy
