"""In-memory metadata index for one folder."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from typing import Optional

from foldercache.models import MetaEntry


class MetadataIndex:
    """Mapping from logical key to :class:`~foldercache.models.MetaEntry`.

    The index is the folder's source of truth for fast decisions (is this
    key cached, is it expired, which entries are least used). It can always
    be rebuilt from disk, one key at a time, by the folder's recovery path.
    Iteration follows insertion order; re-inserting a key moves it to the
    end.
    """

    def __init__(self) -> None:
        self._entries: dict[str, MetaEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, key: str) -> Optional[MetaEntry]:
        return self._entries.get(key)

    def put(self, entry: MetaEntry) -> None:
        """Insert or replace the entry for ``entry.key``."""
        self._entries.pop(entry.key, None)
        self._entries[entry.key] = entry

    def pop(self, key: str) -> Optional[MetaEntry]:
        return self._entries.pop(key, None)

    def discard(self, entry: MetaEntry) -> bool:
        """Remove *entry* only if it is still the one indexed under its key.

        Folder operations await file I/O between reading an entry and
        acting on it; a concurrent ``set`` may have replaced the entry in
        the meantime, and that newer entry must survive.
        """
        if self._entries.get(entry.key) is entry:
            del self._entries[entry.key]
            return True
        return False

    def entries(self) -> list[MetaEntry]:
        """Snapshot of all entries in insertion order."""
        return list(self._entries.values())

    def expired(self, now: int) -> list[MetaEntry]:
        """Snapshot of the entries whose deadline is at or before *now*."""
        return [entry for entry in self._entries.values() if entry.is_expired(now)]

    def with_path(self, path: Path) -> list[MetaEntry]:
        """Entries backed by the file at *path* (several keys may share one)."""
        return [entry for entry in self._entries.values() if entry.path == path]

    def clear(self) -> None:
        self._entries.clear()
