"""Utility functions and helpers."""

from .exceptions import (
    raise_bad_request,
    raise_gateway_timeout,
    raise_service_unavailable,
    raise_unprocessable,
)

__all__ = [
    "raise_bad_request",
    "raise_gateway_timeout",
    "raise_service_unavailable",
    "raise_unprocessable",
]
