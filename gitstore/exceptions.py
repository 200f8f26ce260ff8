"""
Custom exception classes with context for gitstore.

All exceptions inherit from GitStoreError and support attaching
contextual information for better debugging and logging.
"""

from __future__ import annotations


class GitStoreError(Exception):
    """
    Base exception for gitstore.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary with additional context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, object] | None = None):
        """
        Initialize exception with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dictionary with contextual information
                    (operation name, upstream path, status code, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class NotFoundError(GitStoreError):
    """
    Requested path does not exist in the content store.

    Example:
        raise NotFoundError(
            "Path not found upstream",
            context={"path": "storage/missing.txt", "ref": "main"}
        )
    """


class UpstreamError(GitStoreError):
    """
    Content store request failed.

    Base class for every failure talking to the upstream API. Carries
    the upstream status and reason when there was a response at all.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
        context: dict[str, object] | None = None,
    ):
        merged = {"status_code": status_code, "reason": reason, **(context or {})}
        super().__init__(message, context={k: v for k, v in merged.items() if v is not None})
        self.status_code = status_code
        self.reason = reason


class UpstreamUnavailableError(UpstreamError):
    """
    Content store unreachable or returned a server error.

    Example:
        raise UpstreamUnavailableError(
            "Upstream returned 502",
            status_code=502,
            reason="Bad Gateway",
            context={"path": "storage"}
        )
    """


class UpstreamRateLimitedError(UpstreamError):
    """
    Content store rejected the request because of rate limiting.

    Attributes:
        retry_after: Seconds until the caller may retry, when the upstream says
    """

    def __init__(
        self,
        message: str,
        retry_after: int | None = None,
        status_code: int | None = None,
        reason: str | None = None,
        context: dict[str, object] | None = None,
    ):
        super().__init__(message, status_code=status_code, reason=reason, context=context)
        self.retry_after = retry_after
        if retry_after is not None:
            self.context["retry_after"] = retry_after


class AggregationTimeoutError(UpstreamError):
    """Details aggregation did not finish before the request deadline."""


class InvalidPathError(GitStoreError):
    """
    Requested path is malformed.

    Example:
        raise InvalidPathError(
            "Path must not contain relative segments",
            context={"path": "storage/../secrets"}
        )
    """


class ConfigurationError(GitStoreError):
    """
    Configuration error.

    Raised when configuration loading, validation, or parsing fails.

    Example:
        raise ConfigurationError(
            "Missing required configuration key",
            context={
                "key": "github.token",
                "config_file": "/app/config.yaml"
            }
        )
    """
