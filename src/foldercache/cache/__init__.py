"""Namespaced disk-backed JSON caching.

This package provides :class:`Folder`, one cache namespace stored as a
directory of JSON records with an in-memory index, and
:class:`FolderRegistry`, which hands out one folder per name. The
supporting pieces are importable on their own:

* :mod:`~foldercache.cache.keys` -- key to filename sanitising.
* :mod:`~foldercache.cache.codec` -- record encoding and tagged loading.
* :mod:`~foldercache.cache.index` -- the in-memory metadata index.
* :mod:`~foldercache.cache.eviction` -- usage-ranked bulk eviction.
* :mod:`~foldercache.cache.cleaner` -- the periodic expiry sweep.
"""

from foldercache.cache.codec import Corrupt, Hit, Miss
from foldercache.cache.folder import Folder
from foldercache.cache.registry import DEFAULT_FOLDER, FolderRegistry

__all__ = ["DEFAULT_FOLDER", "Corrupt", "Folder", "FolderRegistry", "Hit", "Miss"]
