"""Usage-ranked bulk eviction.

When a folder holds more entries than its ``size`` allows, a fixed
percentage (``trim``) of the index is removed in one pass, least used
first and, among equally used entries, oldest first. Trimming by a
percentage keeps a busy folder from evicting on every single write once
it reaches its bound.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Collection
from pathlib import Path

from foldercache.cache.index import MetadataIndex
from foldercache.models import MetaEntry

logger = logging.getLogger(__name__)


def eviction_count(total: int, size: int, trim: int) -> int:
    """Number of entries one eviction pass removes.

    ``floor(total * trim / 100)``, raised to ``total - size`` when that is
    larger so a pass always brings the index back within ``size``. May be
    zero for a small index that is within bounds.
    """
    count = total * trim // 100
    return max(count, total - size, 0)


def select_victims(
    entries: list[MetaEntry],
    count: int,
    protect: Collection[str] = (),
) -> list[MetaEntry]:
    """Pick the *count* least useful entries.

    Entries are ranked by ``usage_count`` ascending, then by ``added_at``
    ascending. Python's sort is stable, so entries tied on both keep their
    index order. Keys in *protect* are never selected.
    """
    if count <= 0:
        return []
    candidates = [entry for entry in entries if entry.key not in protect]
    candidates.sort(key=lambda entry: (entry.usage_count, entry.added_at))
    return candidates[:count]


async def evict(
    index: MetadataIndex,
    size: int,
    trim: int,
    remove: Callable[[Path], Awaitable[object]],
    protect: Collection[str] = (),
) -> list[MetaEntry]:
    """Run one eviction pass over *index*.

    Victims are dropped from the index first and their files removed
    afterwards through *remove*, so the index never points at a file that
    is being deleted. A victim's file is kept when a surviving entry
    shares it.

    Args:
        index: The folder's index.
        size: Maximum number of entries the folder may hold.
        trim: Percentage of the index to remove per pass.
        remove: Coroutine function deleting one record file (best effort).
        protect: Keys that must not be evicted in this pass.

    Returns:
        The evicted entries.
    """
    count = eviction_count(len(index), size, trim)
    victims = select_victims(index.entries(), count, protect)
    if not victims:
        return []

    for entry in victims:
        index.discard(entry)
    for path in dict.fromkeys(entry.path for entry in victims):
        # Keys that sanitize alike share a file; keep it while one survives.
        if not index.with_path(path):
            await remove(path)

    logger.debug(
        "Evicted %d of %d entries (size=%d, trim=%d%%)",
        len(victims),
        len(index) + len(victims),
        size,
        trim,
    )
    return victims
