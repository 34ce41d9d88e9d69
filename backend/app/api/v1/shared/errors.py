"""Shared error handling utilities for API endpoints.

Maps gateway failures onto HTTP errors for the transit endpoints.
"""

from fastapi import HTTPException

from app.services.transit_errors import TransitServiceError


def gateway_failure(
    exc: TransitServiceError, status_code: int | None = None
) -> HTTPException:
    """Create an HTTP exception for a failed upstream call.

    Args:
        exc: The gateway failure; its ``status_code`` is used unless overridden.
        status_code: Optional fixed status for endpoints that always answer 502.

    Returns:
        An HTTPException carrying the failure message as detail.
    """
    return HTTPException(
        status_code=status_code or exc.status_code,
        detail=exc.message,
    )
