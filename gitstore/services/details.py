"""Details aggregation: size, file count and last modification for a path."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from gitstore.exceptions import (
    AggregationTimeoutError,
    GitStoreError,
    InvalidPathError,
    UpstreamUnavailableError,
)
from gitstore.models.content import Entry, EntryKind, Summary
from gitstore.services.merge import merge_summaries
from gitstore.services.upstream import LISTING_LIMIT
from gitstore.utils.error_handling import ErrorKind, error_kind

if TYPE_CHECKING:
    from gitstore.services.commit_dates import CommitDateResolver
    from gitstore.services.upstream import ContentStoreClient

logger = logging.getLogger(__name__)


def normalize_path(path: str) -> str:
    """
    Normalize a repository path: surrounding slashes stripped, "" is the root.

    Raises:
        InvalidPathError: If the path has empty, "." or ".." segments
    """
    normalized = path.strip().strip("/")
    if not normalized:
        return ""

    if any(segment in ("", ".", "..") for segment in normalized.split("/")):
        msg = "Path must not contain empty or relative segments"
        raise InvalidPathError(msg, context={"path": path})

    return normalized


@dataclass
class _DirectoryFrame:
    """A directory on the work stack and the child summaries gathered for it."""

    entry: Entry
    parent: _DirectoryFrame | None
    children: list[Entry] = field(default_factory=list)
    parts: list[Summary] = field(default_factory=list)
    skipped: int = 0


class DetailsService:
    """
    Aggregates a file or a whole directory subtree into one Summary.

    Failures on the requested path itself fail the request. Failures on a
    descendant exclude that descendant and mark the summary degraded.
    """

    def __init__(
        self,
        client: ContentStoreClient,
        resolver: CommitDateResolver,
        timeout_seconds: float | None = None,
    ) -> None:
        """
        Initialize details service.

        Args:
            client: Content store client (owns the concurrency gate)
            resolver: Commit date resolver
            timeout_seconds: Deadline for one aggregation (None disables it)
        """
        self.client = client
        self.resolver = resolver
        self.timeout_seconds = timeout_seconds

    async def get_details(self, path: str) -> Summary:
        """
        Details for ``path`` under the request deadline.

        Raises:
            InvalidPathError: If the path is malformed
            NotFoundError: If the path does not exist upstream
            UpstreamError: If the content store fails for the path itself
            AggregationTimeoutError: If the deadline expires
        """
        normalized = normalize_path(path)

        try:
            async with asyncio.timeout(self.timeout_seconds):
                summary = await self.aggregate(normalized)
        except TimeoutError as e:
            raise AggregationTimeoutError(
                "Details aggregation timed out",
                context={"path": normalized, "timeout_seconds": self.timeout_seconds},
            ) from e

        if summary.degraded:
            logger.warning(
                "Details summary is degraded",
                extra={
                    "path": normalized,
                    "error_kind": ErrorKind.PARTIAL_AGGREGATION_LOSS.value,
                    "skipped_count": summary.skipped_count,
                },
            )

        return summary

    async def aggregate(self, path: str) -> Summary:
        """Aggregate a normalized path without a deadline."""
        entry = await self.client.get_entry(path)

        if entry.kind is EntryKind.FILE:
            last_modified = await self.resolver.latest_modification(entry.path)
            return Summary.for_file(entry, last_modified)

        try:
            children = await self.client.list_children(entry.path)
        except NotADirectoryError as e:
            raise UpstreamUnavailableError(
                "Path changed from directory to file during aggregation",
                context={"path": entry.path},
            ) from e

        root = _DirectoryFrame(entry=entry, parent=None, children=children)
        self._check_truncated(root)
        return await self._aggregate_tree(root)

    async def _aggregate_tree(self, root: _DirectoryFrame) -> Summary:
        # Frames are kept in discovery order, so every child frame sits after its parent
        frames = [root]
        stack = [root]

        while stack:
            batch, stack = stack, []
            async with asyncio.TaskGroup() as tg:
                for frame in batch:
                    for child in frame.children:
                        if child.kind is EntryKind.FILE:
                            tg.create_task(self._resolve_file(frame, child))
                        else:
                            subframe = _DirectoryFrame(entry=child, parent=frame)
                            tg.create_task(self._list_directory(subframe, stack, frames))

        for frame in reversed(frames[1:]):
            summary = merge_summaries(frame.entry, frame.parts, extra_skipped=frame.skipped)
            frame.parent.parts.append(summary)  # type: ignore[union-attr]

        return merge_summaries(root.entry, root.parts, extra_skipped=root.skipped)

    async def _resolve_file(self, frame: _DirectoryFrame, entry: Entry) -> None:
        try:
            last_modified = await self.resolver.latest_modification(entry.path)
        except GitStoreError as exc:
            self._skip(frame, entry, exc)
            return
        frame.parts.append(Summary.for_file(entry, last_modified))

    async def _list_directory(
        self,
        frame: _DirectoryFrame,
        stack: list[_DirectoryFrame],
        frames: list[_DirectoryFrame],
    ) -> None:
        try:
            frame.children = await self.client.list_children(frame.entry.path)
        except (GitStoreError, NotADirectoryError) as exc:
            self._skip(frame.parent, frame.entry, exc)  # type: ignore[arg-type]
            return
        self._check_truncated(frame)
        frames.append(frame)
        stack.append(frame)

    @staticmethod
    def _check_truncated(frame: _DirectoryFrame) -> None:
        # Entries past the listing limit are never seen, so the frame counts one skip
        if len(frame.children) >= LISTING_LIMIT:
            frame.skipped += 1

    @staticmethod
    def _skip(frame: _DirectoryFrame, entry: Entry, exc: Exception) -> None:
        frame.skipped += 1
        logger.warning(
            "Excluding unresolved entry from details",
            extra={
                "path": entry.path,
                "kind": entry.kind.value,
                "error_kind": error_kind(exc).value,
                "error": str(exc),
            },
        )
