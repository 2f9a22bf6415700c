"""foldercache -- namespaced, disk-backed JSON caching.

Each cache namespace is a *folder*: one directory on disk holding one JSON
record per key, plus an in-memory index that tracks usage and expiry for
every cached key. Folders are handed out by a registry owned by the
application::

    from foldercache.cache import FolderRegistry

    registry = FolderRegistry("/var/cache/myapp")
    templates = registry.get("templates", {"size": 200, "timeout": 30})
    await templates.set("home.html", {"html": "<h1>Hi</h1>"}, ttl=60)
    page = await templates.get("home.html", fallback=None)

Modules:
    cache: Folder, registry, and the pieces they are built from.
    models: Pydantic models for records, index entries, and options.
    config: XDG-aware directories, global configuration, atomic writes.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes for the maintenance CLI.
    output: Rich-aware stdout/stderr output for the CLI.
    app: Typer maintenance CLI.
"""

__version__ = "0.3.0"
