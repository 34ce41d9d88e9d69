"""
Transit data gateway.

Composes the TTL cache with the retrying fetch client into a single
"fresh-or-stale JSON for key K" operation used by every upstream consumer:

- fresh cache hits are served without a network call
- misses and expired entries are refreshed through the retry policy
- when a refresh fails, an expired entry is served and flagged stale
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any
from urllib.parse import urlencode

import httpx
from fastapi import Request

from app.core.config import Settings
from app.core.metrics import record_cache_event
from app.services.transit_errors import (
    TransitConfigurationError,
    TransitServiceError,
)
from app.services.transit_retry import RetryPolicy, fetch_with_retry
from app.services.ttl_cache import TTLCache

logger = logging.getLogger(__name__)

QueryValue = str | int | float | bool | None

_CACHE_NAME = "transit_gateway"


@dataclass(frozen=True, slots=True)
class GatewayMeta:
    """Provenance of a gateway response.

    ``cached`` means no network call completed for this invocation;
    ``stale`` means the value is past its TTL and was served only because
    the refresh failed (``error`` then carries the failure message).
    """

    cached: bool = False
    stale: bool = False
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        if self.error is None:
            payload.pop("error")
        return payload


@dataclass(frozen=True, slots=True)
class GatewayResult:
    data: Any
    meta: GatewayMeta = field(default_factory=GatewayMeta)

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "meta": self.meta.to_dict()}


@dataclass(frozen=True, slots=True)
class CacheOptions:
    """Caching instructions for ``fetch_json``.

    Without an explicit ``cache_key`` the canonical key for the request's
    path and parameters is used. A non-positive TTL disables caching.
    """

    ttl_seconds: float
    cache_key: str | None = None


def _stringify(value: QueryValue) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query_params(params: Mapping[str, QueryValue] | None) -> dict[str, str]:
    """Drop absent/empty parameters and stringify the rest.

    Absent values never reach the upstream query string, not even as ``key=``.
    """
    if not params:
        return {}
    query: dict[str, str] = {}
    for key, value in params.items():
        if value is None or value == "":
            continue
        query[key] = _stringify(value)
    return query


def build_cache_key(path: str, params: Mapping[str, QueryValue] | None) -> str:
    """Derive an order-independent cache key for an upstream request.

    Parameters are normalized like the outgoing query string and sorted, so
    logically identical requests share a key whatever order they were built in.
    """
    query = urlencode(sorted(build_query_params(params).items()))
    return f"transit:{path}?{query}"


class TransitGateway:
    """Cache-aware, retrying client for the Transit API."""

    def __init__(
        self,
        settings: Settings,
        cache: TTLCache,
        client: httpx.AsyncClient,
        retry_policy: RetryPolicy | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._client = client
        self._retry_policy = retry_policy or RetryPolicy.from_settings(settings)
        self._base_url = settings.transit_api_base_url.rstrip("/")
        # Fail at construction so a missing credential surfaces at startup.
        self._build_headers()

    @property
    def cache(self) -> TTLCache:
        return self._cache

    def _build_headers(self) -> dict[str, str]:
        api_key = self._settings.transit_api_key
        if api_key is None or not api_key.get_secret_value():
            logger.error("TRANSIT_API_KEY is not configured")
            raise TransitConfigurationError("Missing TRANSIT_API_KEY")
        secret = api_key.get_secret_value()
        return {name: secret for name in self._settings.transit_api_key_headers}

    def build_url(self, path: str) -> str:
        return f"{self._base_url}/{path.lstrip('/')}"

    async def fetch_json(
        self,
        path: str,
        params: Mapping[str, QueryValue] | None = None,
        cache_options: CacheOptions | None = None,
    ) -> GatewayResult:
        """Return upstream JSON for ``path``, fresh or stale.

        Raises:
            TransitConfigurationError: no API key; raised before any attempt.
            TransitServiceError: the refresh failed and nothing was cached.
        """
        headers = self._build_headers()
        url = self.build_url(path)
        query = build_query_params(params)

        if cache_options is None or cache_options.ttl_seconds <= 0:
            data = await self._fetch(url, headers, query)
            return GatewayResult(data=data)

        cache_key = cache_options.cache_key or build_cache_key(path, params)
        cached = await self._cache.get(cache_key)
        if cached.found and not cached.is_stale:
            record_cache_event(_CACHE_NAME, "hit")
            return GatewayResult(data=cached.value, meta=GatewayMeta(cached=True))

        record_cache_event(_CACHE_NAME, "miss")
        try:
            data = await self._fetch(url, headers, query)
        except TransitServiceError as exc:
            if not cached.found:
                raise
            logger.warning(
                "Serving stale cache entry for %s after refresh failure: %s",
                cache_key,
                exc,
            )
            record_cache_event(_CACHE_NAME, "stale")
            return GatewayResult(
                data=cached.value,
                meta=GatewayMeta(cached=True, stale=True, error=str(exc)),
            )

        await self._cache.set(cache_key, data, cache_options.ttl_seconds)
        record_cache_event(_CACHE_NAME, "store")
        return GatewayResult(data=data)

    async def _fetch(
        self, url: str, headers: dict[str, str], query: dict[str, str]
    ) -> Any:
        return await fetch_with_retry(
            self._client, url, headers, self._retry_policy, query
        )


def get_transit_gateway(request: Request) -> TransitGateway:
    """FastAPI dependency hook returning the gateway built at startup."""
    return request.app.state.transit_gateway


__all__ = [
    "CacheOptions",
    "GatewayMeta",
    "GatewayResult",
    "TransitGateway",
    "build_cache_key",
    "build_query_params",
    "get_transit_gateway",
]
