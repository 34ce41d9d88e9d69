"""Transit gateway exception definitions."""

from __future__ import annotations


class TransitServiceError(Exception):
    """Generic wrapper for Transit gateway failures.

    ``status_code`` is the HTTP status a request handler should surface.
    """

    status_code: int = 502

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class TransitConfigurationError(TransitServiceError):
    """Raised when the gateway is missing required configuration (API key)."""

    status_code = 500


class TransitUpstreamError(TransitServiceError):
    """Raised when the Transit API answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message, status_code=status_code)


class TransitTransportError(TransitServiceError):
    """Raised on DNS, connection, or malformed-body failures."""


class TransitTimeoutError(TransitServiceError):
    """Raised when an attempt exceeded its deadline."""

    status_code = 504


class TripNotFoundError(Exception):
    """Raised when the Transit API returns no itineraries for a request."""


class InvalidTripRequestError(ValueError):
    """Raised when a trip request lacks an origin or destination."""


class InvalidRouteRequestError(ValueError):
    """Raised when a directions request has fewer than two coordinates."""


__all__ = [
    "TransitServiceError",
    "TransitConfigurationError",
    "TransitUpstreamError",
    "TransitTransportError",
    "TransitTimeoutError",
    "TripNotFoundError",
    "InvalidTripRequestError",
    "InvalidRouteRequestError",
]
