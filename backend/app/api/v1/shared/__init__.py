"""Shared utilities for API v1 endpoints."""

from app.api.v1.shared.errors import gateway_failure

__all__ = ["gateway_failure"]
