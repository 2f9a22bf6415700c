"""Cache key to filename mapping.

Keys come from callers and may be anything: numbers, ``None``, or strings
crafted to walk out of the cache directory. :func:`sanitize_key` reduces
any key to a short, safe, deterministic file stem and :func:`key_path`
places it inside a folder's directory.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

RECORD_SUFFIX = ".json"
MAX_STEM_LENGTH = 100

_TRAVERSAL = re.compile(r"^(?:\.{1,2}[/\\])+")
_UNSAFE = re.compile(r"[^A-Za-z0-9._-]")
_LEADING_DOTS = re.compile(r"^\.+")


def coerce_key(key: Any) -> str:
    """Return the string form of *key*.

    ``None`` becomes ``"null"`` and booleans become ``"true"`` /
    ``"false"``, so that keys read the same as they would in the JSON
    records next to them.
    """
    if isinstance(key, str):
        return key
    if key is None:
        return "null"
    if isinstance(key, bool):
        return "true" if key else "false"
    return str(key)


def sanitize_key(key: Any) -> str:
    """Reduce *key* to a safe file stem.

    Leading ``../`` and ``./`` runs are dropped, every character outside
    ``[A-Za-z0-9._-]`` becomes ``-``, leading dots are removed, and the
    result is cut to 100 characters.

    Example::

        >>> sanitize_key("../../../weird$key")
        'weird-key'
        >>> sanitize_key("...hidden")
        'hidden'
    """
    safe = _TRAVERSAL.sub("", coerce_key(key))
    safe = _UNSAFE.sub("-", safe)
    safe = _LEADING_DOTS.sub("", safe)
    safe = safe[:MAX_STEM_LENGTH]
    # An empty stem would produce a hidden ".json" file.
    return safe or "_"


def key_path(directory: Path | str, key: Any) -> Path:
    """Return the absolute record path for *key* inside *directory*."""
    base = Path(os.path.abspath(directory))
    return base / f"{sanitize_key(key)}{RECORD_SUFFIX}"
