"""Built-in CLI sub-commands for foldercache.

This package groups the Typer command modules that form the CLI's
top-level command tree:

* :mod:`~foldercache.commands.folders` -- list, show, read, purge, and
  clear cache folders.
* :mod:`~foldercache.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups like ``config``) or plain callback functions
registered directly on the root app (for single commands like ``get``).
"""
