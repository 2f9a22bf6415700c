"""A named cache namespace backed by one directory of JSON records.

A :class:`Folder` pairs a directory (``<root>/<name>``) with a
:class:`~foldercache.cache.index.MetadataIndex` and a
:class:`~foldercache.cache.cleaner.BackgroundCleaner`. All public
operations are coroutines; blocking filesystem calls run in worker
threads via :func:`asyncio.to_thread`, while the index is only ever
touched from the event loop.

The cache is an optimisation layer: reads never raise. Missing, corrupt,
and expired records all come back as the caller's ``fallback``. Only
write-path filesystem faults surface, as
:class:`~foldercache.exceptions.StorageError`.

Folders are normally obtained from a
:class:`~foldercache.cache.registry.FolderRegistry` rather than
constructed directly.
"""

from __future__ import annotations

import asyncio
import logging
import math
import shutil
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from foldercache.cache import codec
from foldercache.cache.cleaner import BackgroundCleaner
from foldercache.cache.eviction import evict
from foldercache.cache.index import MetadataIndex
from foldercache.cache.keys import coerce_key, key_path, sanitize_key
from foldercache.exceptions import StorageError
from foldercache.models import CacheRecord, MetaEntry, resolve_folder_options

if TYPE_CHECKING:
    from foldercache.cache.registry import FolderRegistry

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def _ttl_deadline(ttl: Any, now: int) -> Optional[int]:
    if isinstance(ttl, bool) or not isinstance(ttl, (int, float)):
        return None
    if isinstance(ttl, int):
        return now + ttl * 1000
    # A finite float can still overflow once scaled to milliseconds.
    millis = ttl * 1000
    if not math.isfinite(millis):
        return None
    return now + int(millis)


class Folder:
    """File-based cache namespace.

    Args:
        name: Folder name; also the name of its subdirectory under *root*.
        root: Cache root directory.
        options: Raw options (``size``, ``trim``, ``timeout``), resolved
            with :func:`~foldercache.models.resolve_folder_options`.
        clock: Function returning the current time in epoch milliseconds.
            Defaults to the wall clock.
        registry: Registry that owns this folder; :meth:`clear` removes the
            folder from it.

    Example::

        folder = Folder("templates", "/var/cache/app", {"size": 100})
        await folder.set("page", {"html": "..."}, ttl=30)
        await folder.get("page")
    """

    def __init__(
        self,
        name: str,
        root: Path | str,
        options: Any = None,
        *,
        clock: Optional[Clock] = None,
        registry: Optional[FolderRegistry] = None,
    ) -> None:
        settings = resolve_folder_options(options)

        self._name = name
        self._path = Path(root).resolve() / sanitize_key(name)
        self._size = settings.size
        self._trim = settings.trim
        self._clock: Clock = clock or now_ms
        self._registry = registry
        self._index = MetadataIndex()
        self._cleaner = BackgroundCleaner(self.sweep, settings.timeout, name=name)

        if settings.clean:
            self.start_cleaning()

    def __repr__(self) -> str:
        return f"Folder(name={self._name!r}, path={str(self._path)!r}, entries={len(self._index)})"

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    @property
    def name(self) -> str:
        return self._name

    @property
    def path(self) -> Path:
        """Absolute directory holding this folder's records."""
        return self._path

    @property
    def size(self) -> int:
        """Maximum number of indexed entries before eviction."""
        return self._size

    @property
    def trim(self) -> int:
        """Percentage of entries removed per eviction pass."""
        return self._trim

    @property
    def timeout(self) -> int:
        """Background sweep interval in milliseconds."""
        return self._cleaner.interval

    @property
    def cleaning(self) -> bool:
        """Whether the background cleaner is enabled."""
        return self._cleaner.enabled

    @property
    def index(self) -> MetadataIndex:
        return self._index

    def join(self, key: Any) -> Path:
        """Return the absolute record path for *key* inside this folder."""
        return key_path(self._path, key)

    # ------------------------------------------------------------------ #
    # Public cache operations
    # ------------------------------------------------------------------ #

    async def get(self, key: Any, fallback: Any = None) -> Any:
        """Return the cached value for *key*, or *fallback* on any miss.

        A key missing from the index is looked up on disk: a valid, live
        record is re-indexed (counting this read as its first use), while
        corrupt and expired records are deleted.

        Args:
            key: Cache key. Non-string keys always miss.
            fallback: Value returned when nothing usable is cached.
        """
        if not isinstance(key, str):
            return fallback

        self._cleaner.resume()
        now = self._clock()
        entry = self._index.get(key)

        if entry is None:
            return await self._recover(key, fallback, now)

        if entry.is_expired(now):
            self._index.discard(entry)
            await self._release(entry.path)
            logger.debug("Expired %s/%s", self._name, key)
            return fallback

        entry.usage_count += 1
        result = await asyncio.to_thread(codec.load_record, entry.path)

        if isinstance(result, codec.Hit):
            return result.record.data

        # The index is stale: the file vanished or was damaged on disk.
        if self._index.discard(entry) and isinstance(result, codec.Corrupt):
            logger.warning(
                "Removing corrupt cache record %s (%s)", entry.path, result.reason
            )
            await self._discard(entry.path)
        return fallback

    async def set(self, key: Any, data: Any, ttl: Optional[float] = None) -> None:
        """Cache *data* under *key*, replacing any previous value.

        The record file is fully written before the key is indexed. If the
        index grows past :attr:`size`, an eviction pass runs before this
        call returns; the key just written is never among its victims.

        Args:
            key: Cache key. Non-string keys are converted to strings.
            data: JSON-serialisable value.
            ttl: Lifetime in seconds. ``None`` (or any non-number) caches
                the value forever.

        Raises:
            InvalidUsageError: If *data* is not JSON-serialisable.
            StorageError: If the record could not be written.
        """
        key = coerce_key(key)
        self._cleaner.resume()

        now = self._clock()
        record = CacheRecord(data=data, added_at=now, expires_at=_ttl_deadline(ttl, now))
        text = codec.encode_record(record)
        path = self.join(key)

        try:
            await asyncio.to_thread(codec.write_record, path, text)
        except OSError as exc:
            raise StorageError(f"Cannot write cache record {path}: {exc}") from exc

        self._index.put(
            MetaEntry(
                key=key,
                path=path,
                usage_count=0,
                added_at=record.added_at,
                expires_at=record.expires_at,
            )
        )

        if len(self._index) > self._size:
            await evict(self._index, self._size, self._trim, self._discard, protect=(key,))

    async def delete(self, key: Any) -> None:
        """Remove *key* from the index and from disk.

        Missing keys and non-string keys are ignored.

        Raises:
            StorageError: If the record exists but could not be deleted.
        """
        if not isinstance(key, str):
            return

        self._index.pop(key)
        path = self.join(key)
        try:
            await asyncio.to_thread(codec.remove_record, path)
        except OSError as exc:
            raise StorageError(f"Cannot delete cache record {path}: {exc}") from exc

    async def clear(self) -> None:
        """Delete the whole folder: directory, index, cleaner, registry slot.

        A later registry lookup by the same name creates a fresh folder.

        Raises:
            StorageError: If the directory could not be removed. The folder
                is still stopped and unregistered.
        """
        self.stop_cleaning()
        self._index.clear()
        try:
            await asyncio.to_thread(self._remove_directory)
        except OSError as exc:
            raise StorageError(f"Cannot remove cache folder {self._path}: {exc}") from exc
        finally:
            if self._registry is not None:
                self._registry.forget(self)
        logger.debug("Cleared folder %s", self._name)

    # ------------------------------------------------------------------ #
    # Maintenance
    # ------------------------------------------------------------------ #

    def start_cleaning(self) -> None:
        """Start the background sweep. No-op if already running."""
        self._cleaner.start()

    def stop_cleaning(self) -> None:
        """Stop the background sweep. No-op if not running."""
        self._cleaner.stop()

    async def sweep(self) -> int:
        """Remove every expired indexed entry from index and disk.

        Unexpired entries are left alone, whatever their usage.

        Returns:
            The number of entries removed.
        """
        expired = self._index.expired(self._clock())
        removed = [entry for entry in expired if self._index.discard(entry)]
        for path in dict.fromkeys(entry.path for entry in removed):
            await self._release(path)
        if removed:
            logger.debug("Swept %d expired entries from %s", len(removed), self._name)
        return len(removed)

    async def prune(self) -> int:
        """Delete corrupt and expired record files found on disk.

        Unlike :meth:`sweep`, this looks at every file in the directory,
        including records the index has never seen (left by an earlier
        process). Index entries pointing at removed files are dropped.

        Returns:
            The number of files removed.

        Raises:
            StorageError: If a file could not be deleted.
        """
        self._cleaner.resume()
        now = self._clock()
        scanned = await asyncio.to_thread(codec.scan_records, self._path)

        removed = 0
        for path, result in scanned:
            status = codec.classify(result, now)
            if status is None or status is codec.RecordStatus.LIVE:
                continue
            for entry in self._index.with_path(path):
                self._index.discard(entry)
            try:
                if await asyncio.to_thread(codec.remove_record, path):
                    removed += 1
            except OSError as exc:
                raise StorageError(f"Cannot delete cache record {path}: {exc}") from exc

        logger.debug("Pruned %d record files from %s", removed, self._name)
        return removed

    def stats(self) -> dict[str, Any]:
        """Return folder statistics.

        Returns:
            A ``dict`` with ``name``, ``directory``, ``entries`` (indexed
            keys), ``size``, ``trim``, ``timeout`` (ms), and ``cleaning``.
        """
        return {
            "name": self._name,
            "directory": str(self._path),
            "entries": len(self._index),
            "size": self._size,
            "trim": self._trim,
            "timeout": self.timeout,
            "cleaning": self.cleaning,
        }

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    async def _recover(self, key: str, fallback: Any, now: int) -> Any:
        """Rebuild the index entry for *key* from its file, if it is usable."""
        path = self.join(key)
        result = await asyncio.to_thread(codec.load_record, path)

        if isinstance(result, codec.Miss):
            return fallback

        if isinstance(result, codec.Corrupt):
            logger.warning("Removing corrupt cache record %s (%s)", path, result.reason)
            await self._discard(path)
            return fallback

        record = result.record
        if record.is_expired(now):
            await self._discard(path)
            return fallback

        # A concurrent set() may have indexed the key while we were reading.
        if key not in self._index:
            self._index.put(
                MetaEntry(
                    key=key,
                    path=path,
                    usage_count=1,
                    added_at=record.added_at,
                    expires_at=record.expires_at,
                )
            )
            logger.debug("Recovered %s/%s from disk", self._name, key)
        return record.data

    async def _release(self, path: Path) -> None:
        """Delete *path* unless another indexed key still uses that file."""
        if self._index.with_path(path):
            logger.debug("Keeping %s, still shared by another key", path)
            return
        await self._discard(path)

    async def _discard(self, path: Path) -> None:
        await asyncio.to_thread(codec.discard_record, path)

    def _remove_directory(self) -> None:
        try:
            shutil.rmtree(self._path)
        except FileNotFoundError:
            pass
