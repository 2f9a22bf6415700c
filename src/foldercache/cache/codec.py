"""Reading and writing cache records.

A record is one UTF-8 JSON document per key::

    {"data": <any JSON value>, "addedAt": 1700000000000, "expiresAt": 1700003600000}

Files on disk are untrusted: they may be missing, truncated, hand-edited,
or left over from an older process. :func:`decode_record` is a pure
function that turns raw text into a tagged result -- :class:`Hit`,
:class:`Miss`, or :class:`Corrupt` -- so that the decision to delete a bad
file is made explicitly by the caller rather than buried in an exception
handler. :func:`load_record`, :func:`write_record`, and
:func:`remove_record` are the blocking I/O wrappers around it; the
:class:`~foldercache.cache.folder.Folder` runs them via
:func:`asyncio.to_thread`.
"""

from __future__ import annotations

import enum
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from pydantic import ValidationError

from foldercache.cache.keys import RECORD_SUFFIX
from foldercache.config import atomic_write
from foldercache.exceptions import InvalidUsageError
from foldercache.models import CacheRecord

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Hit:
    """A well-formed record was read."""

    record: CacheRecord


@dataclass(frozen=True)
class Miss:
    """No record exists at the path (or it could not be opened)."""


@dataclass(frozen=True)
class Corrupt:
    """A file exists but does not hold a valid record."""

    reason: str


LoadResult = Union[Hit, Miss, Corrupt]


class RecordStatus(str, enum.Enum):
    """Classification of an on-disk record at a point in time."""

    LIVE = "live"
    EXPIRED = "expired"
    CORRUPT = "corrupt"


def encode_record(record: CacheRecord) -> str:
    """Serialise *record* to its on-disk JSON text.

    Raises:
        InvalidUsageError: If ``record.data`` is not JSON-serialisable.
    """
    payload = record.model_dump(by_alias=True)
    try:
        return json.dumps(payload, ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise InvalidUsageError(f"Cache data is not JSON-serialisable: {exc}") from exc


def decode_record(raw: str) -> LoadResult:
    """Parse and validate raw record text.

    Returns:
        :class:`Hit` for a valid record, :class:`Corrupt` otherwise. Never
        :class:`Miss` -- that is reserved for files that do not exist.
    """
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        return Corrupt(f"invalid JSON: {exc.msg}")

    if not isinstance(payload, dict):
        return Corrupt(f"expected an object, got {type(payload).__name__}")

    try:
        return Hit(CacheRecord.model_validate(payload))
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err["loc"])
        return Corrupt(f"invalid fields: {fields or 'record'}")


def load_record(path: Path) -> LoadResult:
    """Read and decode the record at *path*."""
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return Miss()
    except UnicodeDecodeError:
        return Corrupt("not valid UTF-8")
    except OSError as exc:
        logger.warning("Cannot read cache record %s: %s", path, exc)
        return Miss()
    return decode_record(raw)


def classify(result: LoadResult, now: int) -> Optional[RecordStatus]:
    """Map a load result to a :class:`RecordStatus` (``None`` for a miss)."""
    if isinstance(result, Corrupt):
        return RecordStatus.CORRUPT
    if isinstance(result, Hit):
        if result.record.is_expired(now):
            return RecordStatus.EXPIRED
        return RecordStatus.LIVE
    return None


def write_record(path: Path, text: str) -> None:
    """Write encoded record text to *path*, creating the directory if needed."""
    atomic_write(path, text)


def remove_record(path: Path) -> bool:
    """Delete the file at *path*, tolerating its absence.

    Returns:
        ``True`` if a file was removed.

    Raises:
        OSError: For any failure other than the file being absent.
    """
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


def discard_record(path: Path) -> bool:
    """Best-effort variant of :func:`remove_record` that logs instead of raising."""
    try:
        return remove_record(path)
    except OSError as exc:
        logger.warning("Cannot remove cache record %s: %s", path, exc)
        return False


def scan_records(directory: Path) -> list[tuple[Path, LoadResult]]:
    """Load every record file in *directory*, sorted by file name.

    Temporary files left by interrupted writes are skipped. A missing
    directory yields an empty list.
    """
    if not directory.is_dir():
        return []
    results: list[tuple[Path, LoadResult]] = []
    for path in sorted(directory.glob(f"*{RECORD_SUFFIX}")):
        if path.is_file():
            results.append((path, load_record(path)))
    return results
