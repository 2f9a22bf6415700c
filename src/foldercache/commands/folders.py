"""Folder commands -- inspect and maintain cache folders on disk.

Provides the top-level ``folders``, ``show``, ``get``, ``purge``, and
``clear`` commands. Each command resolves the cache root (``--root`` flag,
``FOLDERCACHE_ROOT``, global config, XDG cache directory), builds a
:class:`~foldercache.cache.FolderRegistry` for the duration of the
command, and releases it before exiting so no background cleaner
outlives the process's event loop.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer

from foldercache.output import error, format_value, info, print_table, success, suggest

T = TypeVar("T")

_MISSING = object()


def _resolve_root(ctx: typer.Context, config: Any = None) -> Path:
    from foldercache.config import resolve_cache_root

    cli_root = ctx.obj.get("root") if ctx.obj else None
    return resolve_cache_root(cli_root, config=config)


def _run(ctx: typer.Context, action: Callable[[Any], Awaitable[T]]) -> T:
    """Run *action* with a fresh registry and exit cleanly on cache errors."""
    from foldercache.cache import FolderRegistry
    from foldercache.config import load_global_config
    from foldercache.exceptions import FolderCacheError

    async def _main(config: Any, root: Path) -> T:
        registry = FolderRegistry.from_config(config, root=root)
        try:
            return await action(registry)
        finally:
            await registry.close()

    try:
        config = load_global_config()
        return asyncio.run(_main(config, _resolve_root(ctx, config)))
    except FolderCacheError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def _format_ms(value: Optional[int]) -> str:
    if value is None:
        return "never"
    stamp = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return stamp.isoformat(timespec="seconds")


def folders_command(ctx: typer.Context) -> None:
    """List cache folders under the cache root.

    Example::

        foldercache folders
        foldercache --root ./var/cache folders --json
    """
    root = _resolve_root(ctx)
    info(f"Cache root: {root}")

    if not root.is_dir():
        info("No cache folders yet.")
        return

    rows = []
    for directory in sorted(p for p in root.iterdir() if p.is_dir()):
        count = sum(1 for p in directory.glob("*.json") if p.is_file())
        rows.append([directory.name, str(count), str(directory)])

    if not rows:
        info("No cache folders yet.")
        return
    print_table(["Folder", "Records", "Directory"], rows, title="Cache folders")


def show_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Folder name."),
) -> None:
    """Show every record file in a folder with its status.

    Status is ``live``, ``expired``, or ``corrupt``. Nothing is modified;
    use ``purge`` to delete expired and corrupt records.

    Example::

        foldercache show templates
    """
    from foldercache.cache import codec
    from foldercache.cache.folder import now_ms

    async def _show(registry: Any) -> list[list[str]]:
        folder = registry.get(name, {"timeout": False})
        scanned = await asyncio.to_thread(codec.scan_records, folder.path)
        now = now_ms()
        rows = []
        for path, result in scanned:
            status = codec.classify(result, now)
            if isinstance(result, codec.Hit):
                added = _format_ms(result.record.added_at)
                expires = _format_ms(result.record.expires_at)
            else:
                added = expires = "-"
            rows.append([path.name, status.value if status else "missing", added, expires])
        return rows

    rows = _run(ctx, _show)
    if not rows:
        info(f"Folder '{name}' has no records.")
        return
    print_table(["File", "Status", "Added", "Expires"], rows, title=f"Folder {name}")


def get_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Folder name."),
    key: str = typer.Argument(help="Cache key."),
) -> None:
    """Print the value cached under KEY in folder NAME.

    Exits with code 4 when nothing usable is cached. Expired and corrupt
    records found along the way are deleted.

    Example::

        foldercache get templates home.html
        foldercache --json get config app
    """

    from foldercache.exceptions import NotFoundError

    async def _get(registry: Any) -> Any:
        folder = registry.get(name, {"timeout": False})
        value = await folder.get(key, _MISSING)
        if value is _MISSING:
            raise NotFoundError(f"Nothing cached for '{key}' in folder '{name}'.")
        return value

    format_value(_run(ctx, _get))


def purge_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Folder name."),
) -> None:
    """Delete expired and corrupt record files from a folder.

    Example::

        foldercache purge templates
    """

    async def _purge(registry: Any) -> int:
        folder = registry.get(name, {"timeout": False})
        return await folder.prune()

    removed = _run(ctx, _purge)
    success(f"Removed {removed} record(s) from '{name}'.")


def clear_command(
    ctx: typer.Context,
    name: str = typer.Argument(help="Folder name."),
) -> None:
    """Delete a folder and everything cached in it.

    Asks for confirmation unless ``--force`` is active.

    Example::

        foldercache clear templates
        foldercache --force clear templates
    """
    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm(f"Delete cache folder '{name}' and all its records?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    async def _clear(registry: Any) -> None:
        folder = registry.get(name, {"timeout": False})
        await folder.clear()

    _run(ctx, _clear)
    success(f"Cleared folder '{name}'.")
    suggest("Run 'foldercache folders' to see the remaining folders.")
