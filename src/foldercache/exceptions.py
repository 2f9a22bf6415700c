"""Errors raised by foldercache.

The cache raises only where a caller has to react: data that cannot be
stored as JSON, and filesystem faults on the write path. Bad keys, bad
options and missing or damaged records all degrade to a cache miss.

Each class carries the process exit code the CLI uses for it::

    FolderCacheError        1
    |-- ConfigError         1
    |-- InvalidUsageError   2
    |-- NotFoundError       4
    `-- StorageError        5
"""

from foldercache.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_STORAGE_ERROR,
)


class FolderCacheError(Exception):
    """Root of the foldercache error tree.

    Args:
        message: Explanation shown to the user.
        exit_code: Replaces the class's ``exit_code`` for this instance.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(FolderCacheError):
    """The global config file is unreadable, not JSON, or fails validation."""

    exit_code = EXIT_GENERIC_FAILURE


class InvalidUsageError(FolderCacheError):
    """Bad CLI input, or a value that cannot be encoded as JSON."""

    exit_code = EXIT_INVALID_USAGE


class NotFoundError(FolderCacheError):
    """Nothing usable is cached under the requested key."""

    exit_code = EXIT_NOT_FOUND


class StorageError(FolderCacheError):
    """The filesystem refused a record write, a delete, or a folder removal.

    The value was not cached (or not removed). Callers can usually carry
    on without the cache.
    """

    exit_code = EXIT_STORAGE_ERROR
