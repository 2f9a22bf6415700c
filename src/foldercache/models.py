"""Canonical Pydantic models shared across all foldercache modules.

The models fall into three groups:

**Storage models** -- the shapes the cache reads and writes:
    :class:`CacheRecord` (one JSON document on disk per key) and
    :class:`MetaEntry` (the in-memory bookkeeping for one indexed key).

**Folder options** -- :class:`FolderOptions` is the raw, user-supplied
    form (as passed to :meth:`~foldercache.cache.registry.FolderRegistry.get`
    or stored in the global config); :func:`resolve_folder_options` turns
    any raw value into a fully-defaulted :class:`FolderSettings`.

**Configuration models** -- serialised as JSON in the user's config
    directory: :class:`OutputConfig` and :class:`GlobalConfig`.

All models use Pydantic v2.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Any, Optional, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictInt

DEFAULT_SIZE = 500
DEFAULT_TRIM = 10
DEFAULT_TIMEOUT_MS = 60 * 1000


def _whole_number(value: Any) -> Any:
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return int(value)
    return value


# Integer milliseconds; JSON writers that emit `1700000000000.0` are accepted.
Timestamp = Annotated[StrictInt, BeforeValidator(_whole_number)]


# --- Storage models ---


class CacheRecord(BaseModel):
    """One cached value as stored on disk.

    Serialised with camelCase keys so the file format is
    ``{"data": ..., "addedAt": <ms>, "expiresAt": <ms | null>}``.
    ``addedAt`` must be a whole number and ``expiresAt`` must be present
    as a whole number or ``null`` (integral floats such as ``5.0`` count);
    anything else fails validation, which the codec reports as a corrupt
    record.
    """

    model_config = ConfigDict(populate_by_name=True)

    data: Any = None
    added_at: Timestamp = Field(alias="addedAt")
    expires_at: Optional[Timestamp] = Field(alias="expiresAt")

    def is_expired(self, now: int) -> bool:
        """Return ``True`` when the record has a deadline at or before *now*."""
        return self.expires_at is not None and self.expires_at <= now


class MetaEntry(BaseModel):
    """In-memory bookkeeping for one indexed key.

    Entries are mutated in place: reads bump :attr:`usage_count`, while
    expiry and eviction drop the entry from its index.
    """

    key: str
    path: Path
    usage_count: int = 0
    added_at: int
    expires_at: Optional[int] = None

    def is_expired(self, now: int) -> bool:
        """Return ``True`` when the entry has a deadline at or before *now*."""
        return self.expires_at is not None and self.expires_at <= now


# --- Folder options ---


class FolderOptions(BaseModel):
    """Raw folder options as written by a user.

    ``size`` caps the number of indexed entries, ``trim`` is the percentage
    of entries removed per eviction pass, and ``timeout`` is the cleanup
    interval in seconds (``False`` disables the background cleaner). Any
    field may be left out; :func:`resolve_folder_options` fills in the
    defaults.
    """

    size: Optional[int] = None
    trim: Optional[int] = None
    timeout: Optional[Union[bool, int]] = None


class FolderSettings(BaseModel):
    """Resolved, always-valid folder settings."""

    model_config = ConfigDict(frozen=True)

    size: int = DEFAULT_SIZE
    trim: int = DEFAULT_TRIM
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, description="Cleanup interval in ms")
    clean: bool = Field(default=True, description="Run the background cleaner")


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def resolve_folder_options(raw: Any = None) -> FolderSettings:
    """Resolve raw folder options into :class:`FolderSettings`.

    Each field falls back to its default on its own; malformed input never
    raises.

    * ``size`` -- positive integer, else ``500``.
    * ``trim`` -- integer in ``(0, 100]``, else ``10``.
    * ``timeout`` -- positive integer number of seconds, converted to
      milliseconds, else ``60000``. ``False`` keeps the default interval
      but turns the background cleaner off.

    Args:
        raw: A mapping, a :class:`FolderOptions`, or anything else (which
            resolves to all defaults).

    Returns:
        The resolved settings.
    """
    if isinstance(raw, FolderOptions):
        raw = raw.model_dump(exclude_none=True)
    if not isinstance(raw, Mapping):
        raw = {}

    size = raw.get("size")
    trim = raw.get("trim")
    timeout = raw.get("timeout")

    return FolderSettings(
        size=size if _is_int(size) and size > 0 else DEFAULT_SIZE,
        trim=trim if _is_int(trim) and 0 < trim <= 100 else DEFAULT_TRIM,
        timeout=timeout * 1000 if _is_int(timeout) and timeout > 0 else DEFAULT_TIMEOUT_MS,
        clean=timeout is not False,
    )


# --- Configuration models ---


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: str = Field(
        default="auto", description="Output format: auto, json, plain, rich"
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/foldercache/config.json``.

    Loaded and saved by :func:`~foldercache.config.load_global_config` and
    :func:`~foldercache.config.save_global_config`. ``folders`` holds
    per-folder option presets; a registry uses them (layered over
    ``defaults``) whenever a folder is requested without explicit options.
    """

    root: Optional[str] = Field(
        default=None, description="Cache root directory (default: XDG cache dir)"
    )
    defaults: FolderOptions = Field(default_factory=FolderOptions)
    folders: dict[str, FolderOptions] = Field(default_factory=dict)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def options_for(self, name: str) -> dict[str, Any]:
        """Return the raw options preset for folder *name*.

        Per-folder presets override :attr:`defaults` field by field.
        """
        merged = self.defaults.model_dump(exclude_none=True)
        preset = self.folders.get(name)
        if preset is not None:
            merged.update(preset.model_dump(exclude_none=True))
        return merged
