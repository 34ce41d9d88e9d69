"""Bounded retry with linear backoff around ``fetch_once``."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import Settings
from app.core.metrics import record_transit_retry
from app.services.transit_errors import TransitServiceError
from app.services.transit_fetch import (
    FetchOutcome,
    endpoint_label,
    fetch_once,
)

logger = logging.getLogger(__name__)

Fetcher = Callable[..., Awaitable[FetchOutcome]]
Sleeper = Callable[[float], Awaitable[Any]]


@dataclass
class RetryPolicy:
    """Retry configuration for interactive upstream calls.

    ``max_retries`` counts retries, so a call makes at most
    ``max_retries + 1`` attempts. The wait before retry ``n`` (1-based) is
    ``backoff_seconds * n``. Every failure kind consumes the same budget.
    """

    max_retries: int = 2
    timeout_seconds: float = 10.0
    backoff_seconds: float = 0.15

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_settings(cls, settings: Settings) -> "RetryPolicy":
        return cls(
            max_retries=settings.transit_max_retries,
            timeout_seconds=settings.transit_request_timeout_seconds,
            backoff_seconds=settings.transit_retry_backoff_seconds,
        )

    def backoff_for(self, attempt: int) -> float:
        return self.backoff_seconds * attempt


async def fetch_with_retry(
    client: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str],
    policy: RetryPolicy,
    params: Mapping[str, str] | None = None,
    *,
    fetcher: Fetcher = fetch_once,
    sleep: Sleeper = asyncio.sleep,
) -> Any:
    """Return the decoded JSON of the first successful attempt.

    Raises the exception of the last failed attempt once the budget is spent,
    keeping the upstream status code where there was one.
    """
    total_attempts = policy.max_retries + 1

    for attempt in range(1, total_attempts + 1):
        outcome = await fetcher(client, url, headers, policy.timeout_seconds, params)
        if outcome.ok:
            if attempt > 1:
                logger.info("Transit API %s succeeded on attempt %d", url, attempt)
            return outcome.data

        if attempt == total_attempts:
            logger.warning(
                "Transit API %s failed after %d attempts: %s",
                url,
                total_attempts,
                outcome.message,
            )
            raise outcome.to_exception()

        delay = policy.backoff_for(attempt)
        logger.warning(
            "Transit API attempt %d/%d for %s failed (%s); retrying in %.2fs",
            attempt,
            total_attempts,
            url,
            outcome.message,
            delay,
        )
        record_transit_retry(endpoint_label(url), outcome.result)
        await sleep(delay)

    raise TransitServiceError(f"Transit API {url} was not attempted")


__all__ = ["RetryPolicy", "fetch_with_retry"]
