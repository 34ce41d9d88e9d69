from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any, Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from app.core.config import Settings, get_settings  # noqa: E402
from app.main import create_app  # noqa: E402
from app.services.mapbox import MapboxClient, get_mapbox_client  # noqa: E402
from app.services.transit_gateway import (  # noqa: E402
    TransitGateway,
    get_transit_gateway,
)
from app.services.transit_retry import RetryPolicy  # noqa: E402
from app.services.ttl_cache import TTLCache  # noqa: E402

TEST_API_KEY = "test-transit-key"
TEST_MAPBOX_TOKEN = "test-mapbox-token"


class FakeClock:
    """Manually advanced monotonic clock for TTL tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeTransitApi:
    """Scripted Transit API served through ``httpx.MockTransport``.

    Each queued reply is a JSON-able payload, an ``httpx.Response``, or an
    exception instance to raise; the last reply repeats once the queue is
    drained.
    """

    def __init__(self) -> None:
        self.replies: list[Any] = []
        self.requests: list[httpx.Request] = []

    def queue(self, *replies: Any) -> "FakeTransitApi":
        self.replies.extend(replies)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected upstream call: {request.url}")
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return httpx.Response(
                reply.status_code, headers=reply.headers, content=reply.content
            )
        return httpx.Response(200, json=reply)

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        TRANSIT_API_KEY=TEST_API_KEY,
        MAPBOX_TOKEN=TEST_MAPBOX_TOKEN,
        OTEL_ENABLED=False,
    )


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def ttl_cache(fake_clock: FakeClock) -> TTLCache:
    return TTLCache(clock=fake_clock)


@pytest.fixture()
def fake_api() -> FakeTransitApi:
    return FakeTransitApi()


@pytest.fixture()
def make_gateway(
    settings: Settings, ttl_cache: TTLCache, fake_api: FakeTransitApi
) -> Callable[..., TransitGateway]:
    """Build gateways over the fake API with backoff waits disabled."""

    def _make(**overrides: Any) -> TransitGateway:
        policy = RetryPolicy(
            max_retries=overrides.pop("max_retries", 2),
            timeout_seconds=overrides.pop("timeout_seconds", 1.0),
            backoff_seconds=0.0,
        )
        return TransitGateway(
            overrides.pop("settings", settings),
            overrides.pop("cache", ttl_cache),
            fake_api.client(),
            retry_policy=policy,
        )

    return _make


@pytest.fixture()
def gateway(make_gateway: Callable[..., TransitGateway]) -> TransitGateway:
    return make_gateway()


@pytest.fixture()
def mapbox_client(settings: Settings, fake_api: FakeTransitApi) -> MapboxClient:
    return MapboxClient(settings, fake_api.client())


@pytest.fixture()
def api_client(
    monkeypatch: pytest.MonkeyPatch,
    gateway: TransitGateway,
    mapbox_client: MapboxClient,
) -> Iterator[TestClient]:
    """Create a test client whose upstream calls hit the fake API."""
    monkeypatch.setenv("TRANSIT_API_KEY", TEST_API_KEY)
    get_settings.cache_clear()

    app = create_app()
    app.dependency_overrides[get_transit_gateway] = lambda: gateway
    app.dependency_overrides[get_mapbox_client] = lambda: mapbox_client
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    get_settings.cache_clear()
