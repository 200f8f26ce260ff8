"""Resolve the last modification time of a path from its commit history."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from gitstore.services.upstream import ContentStoreClient

logger = logging.getLogger(__name__)


def commit_timestamp(commit: dict[str, Any]) -> datetime | None:
    """
    Extract the timestamp of a commit record.

    Prefers the committer date and falls back to the author date.
    Returns None when neither is present or parseable.
    """
    details = commit.get("commit")
    if not isinstance(details, dict):
        return None

    for role in ("committer", "author"):
        person = details.get(role)
        if not isinstance(person, dict) or not person.get("date"):
            continue
        try:
            timestamp = datetime.fromisoformat(str(person["date"]))
        except ValueError:
            logger.warning(
                "Unparseable commit date",
                extra={"sha": commit.get("sha"), "role": role, "date": person["date"]},
            )
            continue
        return timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=UTC)

    return None


class CommitDateResolver:
    """Looks up the most recent commit touching a path."""

    def __init__(self, client: ContentStoreClient) -> None:
        self.client = client

    async def latest_modification(self, path: str) -> datetime | None:
        """
        Timestamp of the latest commit touching ``path``.

        Returns:
            The commit timestamp, or None if the path has no recorded history

        Raises:
            UpstreamError: If the history lookup fails
        """
        commit = await self.client.latest_commit(path)
        if commit is None:
            return None

        timestamp = commit_timestamp(commit)
        if timestamp is None:
            logger.warning(
                "Commit record has no usable date",
                extra={"path": path, "sha": commit.get("sha")},
            )
        return timestamp
