"""Pure combination of partial details summaries."""

from __future__ import annotations

from collections.abc import Sequence

from gitstore.models.content import Entry, EntryKind, Summary


def merge_summaries(identity: Entry, parts: Sequence[Summary], extra_skipped: int = 0) -> Summary:
    """
    Fold child summaries into the summary of the directory ``identity``.

    Sizes and file counts are summed and the latest timestamp wins, so the
    result does not depend on the order of ``parts``. ``extra_skipped``
    counts direct children that could not be resolved at all.
    """
    total_size = 0
    file_count = 0
    skipped = extra_skipped
    last_modified = None

    for part in parts:
        total_size += part.total_size_bytes
        file_count += 1 if part.kind is EntryKind.FILE else (part.file_count or 0)
        skipped += part.skipped_count
        if part.last_modified is not None and (last_modified is None or part.last_modified > last_modified):
            last_modified = part.last_modified

    return Summary(
        name=identity.name,
        path=identity.path,
        kind=EntryKind.DIRECTORY,
        total_size_bytes=total_size,
        file_count=file_count,
        last_modified=last_modified,
        degraded=skipped > 0,
        skipped_count=skipped,
    )
