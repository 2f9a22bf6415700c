"""Named access to folders.

A :class:`FolderRegistry` guarantees at most one live
:class:`~foldercache.cache.folder.Folder` per name. It is an ordinary
object owned by the application (typically created at start-up and passed
to whatever needs caching), so tests and separate applications in one
process never share folders by accident.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from foldercache.cache.folder import Clock, Folder
from foldercache.cache.keys import sanitize_key
from foldercache.models import GlobalConfig

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "__default__"


class FolderRegistry:
    """Process-local map from folder name to :class:`Folder`.

    Args:
        root: Cache root; each folder uses ``<root>/<name>``.
        clock: Optional epoch-millisecond clock shared by all folders.
        presets: Raw options per folder name, used when :meth:`get` is
            called without explicit options.
        defaults: Raw options for folders that have no preset.

    Example::

        registry = FolderRegistry("/var/cache/app")
        views = registry.get("views", {"size": 1000})
        assert registry.get("views") is views
    """

    def __init__(
        self,
        root: Path | str,
        *,
        clock: Optional[Clock] = None,
        presets: Optional[Mapping[str, Any]] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._root = Path(root).resolve()
        self._clock = clock
        self._presets: dict[str, Any] = dict(presets or {})
        self._defaults: dict[str, Any] = dict(defaults or {})
        self._folders: dict[str, Folder] = {}

    @classmethod
    def from_config(
        cls,
        config: GlobalConfig,
        root: Optional[Path | str] = None,
        *,
        clock: Optional[Clock] = None,
    ) -> FolderRegistry:
        """Build a registry from the global config.

        Args:
            config: Global configuration supplying folder presets (and the
                root, unless *root* is given).
            root: Explicit cache root. Defaults to
                :func:`~foldercache.config.resolve_cache_root`.
            clock: Optional clock shared by all folders.
        """
        from foldercache.config import resolve_cache_root

        if root is None:
            root = resolve_cache_root(config=config)
        presets = {name: config.options_for(name) for name in config.folders}
        defaults = config.defaults.model_dump(exclude_none=True)
        return cls(root, clock=clock, presets=presets, defaults=defaults)

    @property
    def root(self) -> Path:
        return self._root

    def __len__(self) -> int:
        return len(self._folders)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and sanitize_key(name) in self._folders

    def names(self) -> list[str]:
        """Names of the live folders, in creation order."""
        return [folder.name for folder in self._folders.values()]

    def get(self, name: Any = DEFAULT_FOLDER, options: Any = None) -> Folder:
        """Return the folder called *name*, creating it on first use.

        Options only apply when the folder is created; later calls return
        the existing instance unchanged. Names that sanitize to the same
        directory (``a/b`` and ``a-b``) share one folder. A non-string
        *name* selects the default folder, and a mapping passed as *name*
        is taken as the default folder's options.

        Args:
            name: Folder name.
            options: Raw options (``size``, ``trim``, ``timeout``). When
                ``None``, the registry's preset for *name* is used.
        """
        if isinstance(name, Mapping) and options is None:
            name, options = DEFAULT_FOLDER, name
        if not isinstance(name, str):
            name = DEFAULT_FOLDER

        slot = sanitize_key(name)
        folder = self._folders.get(slot)
        if folder is not None:
            if folder.name != name:
                logger.warning("Folder %s shares directory %s with %s", name, slot, folder.name)
            return folder

        if options is None:
            options = self._presets.get(name, self._defaults)

        folder = Folder(name, self._root, options, clock=self._clock, registry=self)
        self._folders[slot] = folder
        logger.debug("Created folder %s at %s", name, folder.path)
        return folder

    async def delete(self, name: Any) -> None:
        """Stop the folder's cleaner and drop it from the registry.

        Cached files stay on disk. Unknown names are ignored.
        """
        folder = self._folders.pop(sanitize_key(name), None) if isinstance(name, str) else None
        if folder is not None:
            folder.stop_cleaning()
            logger.debug("Released folder %s", name)

    async def close(self) -> None:
        """Release every folder (stops all background cleaners)."""
        for name in self.names():
            await self.delete(name)

    def forget(self, folder: Folder) -> None:
        """Drop *folder* from the registry if it is the registered instance."""
        slot = sanitize_key(folder.name)
        if self._folders.get(slot) is folder:
            del self._folders[slot]
