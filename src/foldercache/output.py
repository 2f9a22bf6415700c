"""Terminal output for the maintenance CLI.

Cached values and listings go to stdout; status lines, errors and hints
go to stderr, so ``foldercache --json get ... | jq`` only ever sees data.
Rich styling is used on an interactive terminal and dropped when stdout
is piped, when ``--no-color`` is given, or when ``NO_COLOR`` or
``TERM=dumb`` is set.

Commands talk to the process-wide :class:`OutputManager` through the
module-level helpers; :func:`~foldercache.app.main_callback` installs it.
"""

from __future__ import annotations

import json
import os
import sys
from enum import Enum
from typing import Any, Optional

from rich.console import Console
from rich.json import JSON
from rich.table import Table
from rich.text import Text


class OutputFormat(str, Enum):
    """How data is written to stdout. ``AUTO`` picks RICH or PLAIN."""

    AUTO = "auto"
    JSON = "json"
    PLAIN = "plain"
    RICH = "rich"


# kind -> (prefix, rich style, hidden by --quiet)
_NOTES: dict[str, tuple[str, str, bool]] = {
    "info": ("", "", True),
    "success": ("", "green", True),
    "suggest": ("→ ", "dim", True),
    "error": ("Error: ", "bold red", False),
}


class OutputManager:
    """Routes CLI output to stdout or stderr in the selected format.

    Args:
        format: Output format for data. ``AUTO`` resolves to ``RICH`` on a
            colour-capable terminal and to ``PLAIN`` otherwise.
        no_color: Disable styling on both streams.
        quiet: Hide info, success and suggestion lines. Errors and data
            are always written.
    """

    def __init__(
        self,
        format: OutputFormat = OutputFormat.AUTO,
        no_color: bool = False,
        quiet: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        if format is OutputFormat.AUTO:
            rich = _is_tty() and not self._no_color
            format = OutputFormat.RICH if rich else OutputFormat.PLAIN
        self._format = format
        self._stdout = Console(
            file=sys.stdout,
            no_color=self._no_color,
            force_terminal=format is OutputFormat.RICH,
        )
        self._stderr = Console(file=sys.stderr, no_color=self._no_color, stderr=True)

    @property
    def format(self) -> OutputFormat:
        return self._format

    def format_value(self, value: Any) -> None:
        """Write one cached value (or a dict of facts) to stdout."""
        if self._format is OutputFormat.JSON:
            self._emit(json.dumps(value, indent=2, ensure_ascii=False, default=str))
        elif self._format is OutputFormat.PLAIN:
            if isinstance(value, dict):
                for key, item in value.items():
                    self._emit(f"{key}\t{_one_line(item)}")
            elif isinstance(value, list):
                for item in value:
                    self._emit(_one_line(item))
            else:
                self._emit(_one_line(value))
        elif isinstance(value, (dict, list)):
            self._stdout.print(JSON.from_data(value, ensure_ascii=False, default=str))
        else:
            self._stdout.print(_one_line(value), markup=False, highlight=False)

    def print_table(
        self,
        headers: list[str],
        rows: list[list[str]],
        title: Optional[str] = None,
    ) -> None:
        """Write rows to stdout: a Rich table, TSV lines, or a JSON array.

        In JSON mode each row becomes an object keyed by *headers*. The
        *title* is only shown by the Rich table.
        """
        if self._format is OutputFormat.JSON:
            self._emit(json.dumps([dict(zip(headers, row)) for row in rows], indent=2))
            return
        if self._format is OutputFormat.PLAIN:
            for line in [headers, *rows]:
                self._emit("\t".join(line))
            return
        table = Table(*headers, title=title, header_style="bold cyan")
        for row in rows:
            table.add_row(*row)
        self._stdout.print(table)

    def info(self, message: str) -> None:
        self._note("info", message)

    def success(self, message: str) -> None:
        self._note("success", message)

    def suggest(self, message: str) -> None:
        self._note("suggest", message)

    def error(self, message: str) -> None:
        self._note("error", message)

    def _note(self, kind: str, message: str) -> None:
        prefix, style, quietable = _NOTES[kind]
        if quietable and self._quiet:
            return
        if self._no_color:
            print(prefix + message, file=sys.stderr, flush=True)
        else:
            self._stderr.print(Text(prefix + message, style=style))

    def _emit(self, text: str) -> None:
        print(text, file=sys.stdout, flush=True)


def _one_line(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, default=str)


def _is_tty() -> bool:
    return hasattr(sys.stdout, "isatty") and sys.stdout.isatty()


def _should_disable_color() -> bool:
    """``NO_COLOR`` (any value, see no-color.org) or ``TERM=dumb``."""
    return "NO_COLOR" in os.environ or os.environ.get("TERM") == "dumb"


_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the installed manager, creating a default one on first use."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    global _output
    _output = output


def reset_output() -> None:
    """Forget the installed manager (its consoles hold the old streams)."""
    global _output
    _output = None


def format_value(value: Any) -> None:
    get_output().format_value(value)


def print_table(headers: list[str], rows: list[list[str]], title: Optional[str] = None) -> None:
    get_output().print_table(headers, rows, title)


def info(message: str) -> None:
    get_output().info(message)


def success(message: str) -> None:
    get_output().success(message)


def suggest(message: str) -> None:
    get_output().suggest(message)


def error(message: str) -> None:
    get_output().error(message)
