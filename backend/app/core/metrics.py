from __future__ import annotations

from prometheus_client import Counter, Histogram

CACHE_EVENTS = Counter(
    "transit_gateway_cache_events_total",
    "Cache operations recorded by the transit gateway.",
    labelnames=("cache", "event"),
)
TRANSIT_REQUESTS = Counter(
    "transit_gateway_upstream_requests_total",
    "Outbound Transit API request attempts.",
    labelnames=("endpoint", "result"),
)
TRANSIT_REQUEST_LATENCY = Histogram(
    "transit_gateway_upstream_request_seconds",
    "Latency of outbound Transit API request attempts.",
    labelnames=("endpoint",),
)
TRANSIT_RETRIES = Counter(
    "transit_gateway_upstream_retries_total",
    "Retries issued after a failed Transit API attempt.",
    labelnames=("endpoint", "reason"),
)


def record_cache_event(cache: str, event: str) -> None:
    """Increment a cache event counter."""
    CACHE_EVENTS.labels(cache=cache, event=event).inc()


def observe_transit_request(
    endpoint: str, result: str, duration_seconds: float
) -> None:
    """Record Transit request result and latency."""
    TRANSIT_REQUESTS.labels(endpoint=endpoint, result=result).inc()
    TRANSIT_REQUEST_LATENCY.labels(endpoint=endpoint).observe(duration_seconds)


def record_transit_retry(endpoint: str, reason: str) -> None:
    """Record a retry scheduled after a failed attempt."""
    TRANSIT_RETRIES.labels(endpoint=endpoint, reason=reason).inc()
