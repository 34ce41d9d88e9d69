"""Unit tests for the bounded retry policy."""

from __future__ import annotations

import httpx
import pytest

from app.core.config import Settings
from app.services.transit_errors import (
    TransitServiceError,
    TransitTimeoutError,
    TransitTransportError,
    TransitUpstreamError,
)
from app.services.transit_fetch import (
    FetchSuccess,
    TimeoutFailure,
    TransportFailure,
    UpstreamFailure,
)
from app.services.transit_retry import RetryPolicy, fetch_with_retry

URL = "https://transit.test/v3/public/plan"


class ScriptedFetcher:
    """Returns queued outcomes in order, recording each attempt."""

    def __init__(self, *outcomes) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self, client, url, headers, timeout_seconds, params):
        self.calls += 1
        return self.outcomes.pop(0)


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def client():
    return httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(500)))


@pytest.mark.asyncio
async def test_always_failing_makes_three_attempts_and_raises_last(client):
    fetcher = ScriptedFetcher(
        TransportFailure("reset"),
        TimeoutFailure(1.0),
        UpstreamFailure(503, "Transit API error: 503 Service Unavailable"),
    )
    sleep = RecordingSleep()

    with pytest.raises(TransitUpstreamError) as excinfo:
        await fetch_with_retry(
            client, URL, {}, RetryPolicy(max_retries=2), fetcher=fetcher, sleep=sleep
        )

    assert fetcher.calls == 3
    assert excinfo.value.status_code == 503
    assert sleep.delays == pytest.approx([0.15, 0.30])


@pytest.mark.asyncio
async def test_first_success_returns_without_waiting(client):
    fetcher = ScriptedFetcher(FetchSuccess({"ok": True}), TransportFailure("unused"))
    sleep = RecordingSleep()

    data = await fetch_with_retry(
        client, URL, {}, RetryPolicy(), fetcher=fetcher, sleep=sleep
    )

    assert data == {"ok": True}
    assert fetcher.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_recovers_after_transient_failure(client):
    fetcher = ScriptedFetcher(TimeoutFailure(1.0), FetchSuccess([1, 2]))
    sleep = RecordingSleep()

    data = await fetch_with_retry(
        client, URL, {}, RetryPolicy(), fetcher=fetcher, sleep=sleep
    )

    assert data == [1, 2]
    assert fetcher.calls == 2
    assert sleep.delays == pytest.approx([0.15])


@pytest.mark.asyncio
async def test_client_errors_use_the_same_budget(client):
    fetcher = ScriptedFetcher(*[UpstreamFailure(404, "Transit API error: 404 Not Found")] * 3)

    with pytest.raises(TransitUpstreamError) as excinfo:
        await fetch_with_retry(
            client, URL, {}, RetryPolicy(), fetcher=fetcher, sleep=RecordingSleep()
        )

    assert fetcher.calls == 3
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_zero_retries_makes_single_attempt(client):
    fetcher = ScriptedFetcher(TimeoutFailure(0.5))
    sleep = RecordingSleep()

    with pytest.raises(TransitTimeoutError):
        await fetch_with_retry(
            client, URL, {}, RetryPolicy(max_retries=0), fetcher=fetcher, sleep=sleep
        )

    assert fetcher.calls == 1
    assert sleep.delays == []


@pytest.mark.asyncio
async def test_default_fetcher_against_mock_transport():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("down", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(TransitTransportError):
            await fetch_with_retry(
                client,
                URL,
                {},
                RetryPolicy(max_retries=1, backoff_seconds=0.0),
            )

    assert len(calls) == 2


def test_policy_from_settings():
    settings = Settings(
        TRANSIT_MAX_RETRIES=4,
        TRANSIT_REQUEST_TIMEOUT_SECONDS=3.5,
        TRANSIT_RETRY_BACKOFF_SECONDS=0.2,
    )

    policy = RetryPolicy.from_settings(settings)

    assert policy.max_retries == 4
    assert policy.timeout_seconds == 3.5
    assert policy.backoff_for(1) == pytest.approx(0.2)
    assert policy.backoff_for(3) == pytest.approx(0.6)


def test_negative_retry_budget_rejected():
    with pytest.raises(ValueError):
        RetryPolicy(max_retries=-1)


@pytest.mark.asyncio
async def test_exhausted_budget_raises_service_error_without_attempting(client):
    policy = RetryPolicy()
    policy.max_retries = -1
    fetcher = ScriptedFetcher(FetchSuccess({"ok": True}))

    with pytest.raises(TransitServiceError):
        await fetch_with_retry(
            client, URL, {}, policy, fetcher=fetcher, sleep=RecordingSleep()
        )

    assert fetcher.calls == 0
