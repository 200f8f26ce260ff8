"""Client for the remote content store (GitHub contents and commits APIs)."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any
from urllib.parse import quote

import httpx

from gitstore.config import UpstreamConfig
from gitstore.exceptions import NotFoundError, UpstreamRateLimitedError, UpstreamUnavailableError
from gitstore.models.content import Entry, EntryKind

logger = logging.getLogger(__name__)

USER_AGENT = "gitstore"

# The contents API returns at most this many entries for one directory
LISTING_LIMIT = 1000


class ContentStoreClient:
    """
    Read-only client for the content store.

    Every request passes through a semaphore that caps simultaneous upstream
    calls at ``config.max_concurrent_requests``. The client never retries;
    failures surface as typed exceptions.
    """

    def __init__(
        self,
        config: UpstreamConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize content store client.

        Args:
            config: Immutable upstream coordinates, credentials and limits
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.config = config
        self._gate = asyncio.Semaphore(config.max_concurrent_requests)
        self._client = httpx.AsyncClient(
            base_url=config.api_base_url,
            timeout=config.timeout_seconds,
            headers={
                "Authorization": f"token {config.token}",
                "Accept": "application/vnd.github+json",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> ContentStoreClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def get_entry(self, path: str) -> Entry:
        """
        Get metadata for the entry at ``path``.

        Raises:
            NotFoundError: If the path does not exist on the configured branch
            UpstreamError: If the content store fails
        """
        data = await self._get_contents(path)

        if isinstance(data, list):
            # The contents API answers a directory path with its listing
            name = path.rsplit("/", 1)[-1] if path else self.config.repo
            return Entry(name=name, path=path, kind=EntryKind.DIRECTORY)

        if isinstance(data, dict):
            return self._entry_from_payload(data)

        raise UpstreamUnavailableError(
            "Content store returned an unexpected entry payload",
            context={"path": path, "payload_type": type(data).__name__},
        )

    async def list_children(self, path: str) -> list[Entry]:
        """
        List the immediate children of the directory at ``path``.

        Raises:
            NotFoundError: If the path does not exist on the configured branch
            NotADirectoryError: If the path is a file
            UpstreamError: If the content store fails
        """
        data = await self._get_contents(path)

        if isinstance(data, dict):
            raise NotADirectoryError(path)

        if not isinstance(data, list):
            raise UpstreamUnavailableError(
                "Content store returned an unexpected listing payload",
                context={"path": path, "payload_type": type(data).__name__},
            )

        if len(data) >= LISTING_LIMIT:
            logger.warning(
                "Directory listing truncated by the content store",
                extra={"path": path, "limit": LISTING_LIMIT},
            )

        return [self._entry_from_payload(item) for item in data]

    async def latest_commit(self, path: str) -> dict[str, Any] | None:
        """
        Get the most recent commit touching ``path``.

        Returns:
            The raw commit record, or None if the path has no history

        Raises:
            UpstreamError: If the content store fails
        """
        params: dict[str, Any] = {"sha": self.config.branch, "per_page": 1}
        if path:
            params["path"] = path

        try:
            data = await self._request(f"{self.config.repo_path}/commits", params=params, path=path)
        except UpstreamUnavailableError as exc:
            # GitHub answers 409 for a repository without any commits
            if exc.status_code == 409:
                return None
            raise

        if not isinstance(data, list) or (data and not isinstance(data[0], dict)):
            raise UpstreamUnavailableError(
                "Content store returned an unexpected history payload",
                context={"path": path, "payload_type": type(data).__name__},
            )

        return data[0] if data else None

    async def check_reachable(self) -> dict[str, Any]:
        """Fetch repository metadata; used by the readiness probe."""
        return await self._request(self.config.repo_path, path="")

    async def _get_contents(self, path: str) -> Any:
        url = f"{self.config.repo_path}/contents"
        if path:
            url = f"{url}/{quote(path, safe='/')}"
        return await self._request(url, params={"ref": self.config.branch}, path=path)

    async def _request(self, url: str, path: str, params: dict[str, Any] | None = None) -> Any:
        async with self._gate:
            logger.debug("Content store request", extra={"url": url, "path": path})
            try:
                response = await self._client.get(url, params=params)
            except httpx.RequestError as e:
                raise UpstreamUnavailableError(
                    f"Content store unreachable: {e}",
                    reason=type(e).__name__,
                    context={"path": path},
                ) from e

        self._raise_for_status(response, path)

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamUnavailableError(
                "Content store returned invalid JSON",
                status_code=response.status_code,
                context={"path": path},
            ) from e

    def _raise_for_status(self, response: httpx.Response, path: str) -> None:
        if response.status_code < 400:
            return

        reason = _upstream_message(response)

        if response.status_code == 404:
            raise NotFoundError(
                f"Path not found upstream: {path or '/'}",
                context={"path": path, "ref": self.config.branch},
            )

        if response.status_code == 429 or (
            response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0"
        ):
            raise UpstreamRateLimitedError(
                "Content store rate limit exceeded",
                retry_after=_retry_after_seconds(response.headers),
                status_code=response.status_code,
                reason=reason,
                context={"path": path},
            )

        raise UpstreamUnavailableError(
            f"Content store returned {response.status_code}",
            status_code=response.status_code,
            reason=reason,
            context={"path": path},
        )

    @staticmethod
    def _entry_from_payload(item: Any) -> Entry:
        try:
            kind = EntryKind.DIRECTORY if item.get("type") == "dir" else EntryKind.FILE
            return Entry(
                name=item["name"],
                path=item["path"],
                kind=kind,
                size=int(item.get("size") or 0) if kind is EntryKind.FILE else 0,
                content_id=item.get("sha"),
            )
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise UpstreamUnavailableError(
                "Content store returned a malformed entry",
                context={"error": str(e)},
            ) from e


def _upstream_message(response: httpx.Response) -> str:
    """Best human-readable reason from an upstream error response."""
    try:
        body = response.json()
    except ValueError:
        return response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase


def _retry_after_seconds(headers: httpx.Headers) -> int | None:
    """Seconds to wait before retrying, from Retry-After or X-RateLimit-Reset."""
    retry_after = headers.get("Retry-After", "").strip()
    if retry_after.isdigit():
        return int(retry_after)

    reset = headers.get("X-RateLimit-Reset", "").strip()
    if reset.isdigit():
        return max(int(reset) - int(time.time()), 0)

    return None
