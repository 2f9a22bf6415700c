"""Command-line entry point for maintaining foldercache roots.

The cache is a library; this CLI is for operators who want to look
inside a cache root, read one value, purge stale records or drop a whole
folder without writing code.

``main`` is the ``foldercache`` console script. Cache errors exit with
their own code (see :mod:`foldercache.exit_codes`); anything unexpected
leaves a traceback in the data directory and exits with code 1.
"""

from __future__ import annotations

import logging
import signal
import sys
import traceback
from datetime import datetime
from typing import Any, Optional

import typer

from foldercache import __version__
from foldercache.exit_codes import EXIT_GENERIC_FAILURE

EXIT_INTERRUPTED = 130

app = typer.Typer(
    name="foldercache",
    help="Inspect and maintain foldercache cache folders.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

from foldercache.commands.config import config_app  # noqa: E402
from foldercache.commands.folders import (  # noqa: E402
    clear_command,
    folders_command,
    get_command,
    purge_command,
    show_command,
)

for _name, _command in (
    ("folders", folders_command),
    ("show", show_command),
    ("get", get_command),
    ("purge", purge_command),
    ("clear", clear_command),
):
    app.command(_name)(_command)
app.add_typer(config_app, name="config", help="View and edit the global config.")


def _print_version(value: bool) -> None:
    if value:
        typer.echo(f"foldercache {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
    root: Optional[str] = typer.Option(None, "--root", "-r", help="Cache root directory."),
    json_output: bool = typer.Option(False, "--json", help="Write data as JSON."),
    plain_output: bool = typer.Option(False, "--plain", help="Write data as plain text."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colours."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only print data and errors."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log cache activity to stderr."),
    force: bool = typer.Option(False, "--force", "-f", help="Do not ask for confirmation."),
) -> None:
    """Set up output and logging, then hand shared flags to the command."""
    from foldercache.output import OutputFormat, OutputManager, set_output

    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN
    else:
        fmt = OutputFormat.AUTO
    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet))

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
            stream=sys.stderr,
        )

    ctx.ensure_object(dict)
    ctx.obj.update(root=root, force=force)


def _on_sigint(signum: int, frame: Any) -> None:
    sys.stderr.write("\nCancelled.\n")
    sys.exit(EXIT_INTERRUPTED)


def _save_traceback() -> str:
    """Write the active traceback under the data directory; return its path."""
    from foldercache.config import get_data_dir

    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    path = get_data_dir() / f"crash-{stamp}.log"
    path.write_text(traceback.format_exc(), encoding="utf-8")
    return str(path)


def main() -> None:
    """Run the CLI. Always ends in ``SystemExit``."""
    from foldercache.exceptions import FolderCacheError
    from foldercache.output import error

    signal.signal(signal.SIGINT, _on_sigint)
    try:
        app()
    except FolderCacheError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except Exception:
        error(f"Unexpected error. Traceback saved to {_save_traceback()}")
        sys.exit(EXIT_GENERIC_FAILURE)
