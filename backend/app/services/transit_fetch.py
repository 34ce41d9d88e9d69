"""Single-attempt Transit API fetch with outcome classification.

``fetch_once`` never raises for upstream or network trouble; it returns one
of the outcome records below so the retry loop can iterate over plain data.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union
from urllib.parse import urlsplit

import httpx

from app.core.metrics import observe_transit_request
from app.core.telemetry import add_traceparent_header
from app.services.transit_errors import (
    TransitServiceError,
    TransitTimeoutError,
    TransitTransportError,
    TransitUpstreamError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class FetchSuccess:
    """Decoded JSON body of a 2xx response."""

    data: Any

    ok = True


@dataclass(frozen=True, slots=True)
class UpstreamFailure:
    """Non-2xx response from the Transit API."""

    status_code: int
    message: str

    ok = False
    result = "upstream_error"

    def to_exception(self) -> TransitServiceError:
        return TransitUpstreamError(self.status_code, self.message)


@dataclass(frozen=True, slots=True)
class TransportFailure:
    """DNS, connection, protocol, or body-decoding failure."""

    message: str

    ok = False
    result = "transport_error"

    def to_exception(self) -> TransitServiceError:
        return TransitTransportError(self.message)


@dataclass(frozen=True, slots=True)
class TimeoutFailure:
    """The attempt did not complete within its deadline."""

    timeout_seconds: float
    service: str = "Transit API"

    ok = False
    result = "timeout"

    @property
    def message(self) -> str:
        return f"{self.service} request timed out after {self.timeout_seconds:g}s"

    def to_exception(self) -> TransitServiceError:
        return TransitTimeoutError(self.message)


FetchFailure = Union[UpstreamFailure, TransportFailure, TimeoutFailure]
FetchOutcome = Union[FetchSuccess, FetchFailure]


def endpoint_label(url: str) -> str:
    return urlsplit(url).path or "/"


async def fetch_once(
    client: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str],
    timeout_seconds: float,
    params: Mapping[str, str] | None = None,
    *,
    service: str = "Transit API",
    endpoint: str | None = None,
) -> FetchOutcome:
    """Issue one GET and classify the result.

    The whole exchange (connect, send, read body) shares one deadline; on
    expiry the request task is cancelled, which releases its connection.
    ``service`` prefixes failure messages and ``endpoint`` overrides the
    metrics label for paths that embed request data.
    """
    endpoint = endpoint or endpoint_label(url)
    start = time.perf_counter()
    outcome: FetchOutcome
    try:
        response = await asyncio.wait_for(
            client.get(
                url,
                params=dict(params) if params else None,
                headers=add_traceparent_header(dict(headers)),
                timeout=timeout_seconds,
            ),
            timeout=timeout_seconds,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        outcome = TimeoutFailure(timeout_seconds, service)
    except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as exc:
        # InvalidURL and header encoding errors are not HTTPError subclasses
        outcome = TransportFailure(f"{service} request failed: {exc}")
    else:
        if not response.is_success:
            outcome = UpstreamFailure(
                response.status_code,
                f"{service} error: {response.status_code} {response.reason_phrase}".rstrip(),
            )
        else:
            try:
                outcome = FetchSuccess(response.json())
            except ValueError as exc:
                outcome = TransportFailure(f"{service} returned malformed JSON: {exc}")

    observe_transit_request(
        endpoint, "success" if outcome.ok else outcome.result, time.perf_counter() - start
    )
    if not outcome.ok:
        logger.debug("%s attempt for %s failed: %s", service, endpoint, outcome.message)
    return outcome


__all__ = [
    "FetchSuccess",
    "UpstreamFailure",
    "TransportFailure",
    "TimeoutFailure",
    "FetchFailure",
    "FetchOutcome",
    "endpoint_label",
    "fetch_once",
]
