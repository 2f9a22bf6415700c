"""Process exit codes of the ``foldercache`` command.

Wrapper scripts can tell a plain cache miss from a broken cache
directory::

    $ foldercache get templates home.html || echo "exit $?"
    exit 4
"""

EXIT_SUCCESS = 0

EXIT_GENERIC_FAILURE = 1
"""Unexpected failure or an invalid global config."""

EXIT_INVALID_USAGE = 2
"""Bad arguments, an unknown config key, or data that is not JSON."""

EXIT_NOT_FOUND = 4
"""Nothing usable is cached under the key."""

EXIT_STORAGE_ERROR = 5
"""The filesystem refused a write, delete, or directory removal."""
