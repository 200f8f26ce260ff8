"""
Error handling utilities for gitstore.

Maps exceptions onto the wire-level error kinds, HTTP status codes and
structured payloads returned by the API.
"""

from __future__ import annotations

from enum import Enum

from fastapi import status

from gitstore.exceptions import (
    AggregationTimeoutError,
    InvalidPathError,
    NotFoundError,
    UpstreamRateLimitedError,
    UpstreamUnavailableError,
)


class ErrorKind(str, Enum):
    """Error kinds exposed to callers and written to logs."""

    NOT_FOUND = "NotFound"
    UPSTREAM_UNAVAILABLE = "UpstreamUnavailable"
    UPSTREAM_RATE_LIMITED = "UpstreamRateLimited"
    UPSTREAM_TIMEOUT = "UpstreamTimeout"
    INVALID_PATH = "InvalidPath"
    INTERNAL_ERROR = "InternalError"
    PARTIAL_AGGREGATION_LOSS = "PartialAggregationLoss"


# Order matters: subclasses before their bases
_KIND_BY_TYPE: list[tuple[type[Exception], ErrorKind, int]] = [
    (NotFoundError, ErrorKind.NOT_FOUND, status.HTTP_404_NOT_FOUND),
    (InvalidPathError, ErrorKind.INVALID_PATH, status.HTTP_400_BAD_REQUEST),
    (UpstreamRateLimitedError, ErrorKind.UPSTREAM_RATE_LIMITED, status.HTTP_503_SERVICE_UNAVAILABLE),
    (AggregationTimeoutError, ErrorKind.UPSTREAM_TIMEOUT, status.HTTP_504_GATEWAY_TIMEOUT),
    (UpstreamUnavailableError, ErrorKind.UPSTREAM_UNAVAILABLE, status.HTTP_502_BAD_GATEWAY),
]


def error_kind(e: Exception) -> ErrorKind:
    """Classify an exception into its wire-level error kind."""
    for exc_type, kind, _ in _KIND_BY_TYPE:
        if isinstance(e, exc_type):
            return kind
    return ErrorKind.INTERNAL_ERROR


def error_status_code(e: Exception) -> int:
    """HTTP status code for an exception raised while serving a request."""
    for exc_type, _, status_code in _KIND_BY_TYPE:
        if isinstance(e, exc_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_headers(e: Exception) -> dict[str, str] | None:
    """Extra response headers for an error (Retry-After for rate limiting)."""
    if isinstance(e, UpstreamRateLimitedError) and e.retry_after is not None:
        return {"Retry-After": str(e.retry_after)}
    return None


def format_error_response(e: Exception) -> dict[str, str]:
    """
    Format exception for API error response.

    Unexpected exceptions get a generic detail so internals never leak.

    Example:
        >>> format_error_response(NotFoundError("Path not found upstream"))
        {'error': 'NotFound', 'detail': 'Path not found upstream'}
    """
    kind = error_kind(e)
    if kind is ErrorKind.INTERNAL_ERROR:
        return {"error": kind.value, "detail": "Unexpected error"}
    return {"error": kind.value, "detail": str(e)}
