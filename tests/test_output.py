"""Tests for foldercache.output: stream routing and the three data formats."""

from __future__ import annotations

import json

import pytest

from foldercache import output
from foldercache.output import OutputFormat, OutputManager


@pytest.fixture
def piped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("foldercache.output._is_tty", lambda: False)


@pytest.fixture
def terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr("foldercache.output._is_tty", lambda: True)
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.setenv("TERM", "xterm-256color")


def _plain(**kwargs) -> OutputManager:
    return OutputManager(format=OutputFormat.PLAIN, no_color=True, **kwargs)


class TestFormatSelection:
    def test_piped_auto_is_plain(self, piped) -> None:
        assert OutputManager().format is OutputFormat.PLAIN

    def test_terminal_auto_is_rich(self, terminal) -> None:
        assert OutputManager().format is OutputFormat.RICH

    @pytest.mark.parametrize("env, value", [("NO_COLOR", ""), ("TERM", "dumb")])
    def test_colour_opt_out_makes_auto_plain(
        self, terminal, monkeypatch: pytest.MonkeyPatch, env: str, value: str
    ) -> None:
        monkeypatch.setenv(env, value)
        assert OutputManager().format is OutputFormat.PLAIN

    def test_no_color_flag_makes_auto_plain(self, terminal) -> None:
        assert OutputManager(no_color=True).format is OutputFormat.PLAIN

    def test_explicit_format_wins(self, terminal) -> None:
        assert OutputManager(format=OutputFormat.JSON).format is OutputFormat.JSON


class TestDiagnostics:
    @pytest.mark.parametrize(
        "method, expected",
        [
            ("info", "cache root: /srv\n"),
            ("success", "cache root: /srv\n"),
            ("suggest", "→ cache root: /srv\n"),
            ("error", "Error: cache root: /srv\n"),
        ],
    )
    def test_written_to_stderr_only(self, capsys, method: str, expected: str) -> None:
        getattr(_plain(), method)("cache root: /srv")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err == expected

    @pytest.mark.parametrize("method", ["info", "success", "suggest"])
    def test_quiet_hides_status_lines(self, capsys, method: str) -> None:
        getattr(_plain(quiet=True), method)("hidden")
        assert capsys.readouterr().err == ""

    def test_quiet_keeps_errors_and_data(self, capsys) -> None:
        manager = _plain(quiet=True)
        manager.error("broken")
        manager.format_value("value")
        captured = capsys.readouterr()
        assert captured.err == "Error: broken\n"
        assert captured.out == "value\n"

    def test_styled_message_is_not_markup(self, capsys, piped) -> None:
        OutputManager(format=OutputFormat.RICH).info("key [bold]raw[/bold]")
        assert "[bold]raw[/bold]" in capsys.readouterr().err


class TestFormatValue:
    def test_json_is_indented_and_unescaped(self, capsys) -> None:
        value = {"title": "日本語", "tags": ["a", "b"]}
        OutputManager(format=OutputFormat.JSON).format_value(value)
        out = capsys.readouterr().out
        assert json.loads(out) == value
        assert "日本語" in out
        assert '\n  "tags"' in out

    def test_json_scalars(self, capsys) -> None:
        manager = OutputManager(format=OutputFormat.JSON)
        manager.format_value("text")
        manager.format_value(None)
        assert capsys.readouterr().out == '"text"\nnull\n'

    @pytest.mark.parametrize(
        "value, expected",
        [
            ({"name": "views", "entries": 3}, "name\tviews\nentries\t3\n"),
            ({"tags": ["a", "b"]}, 'tags\t["a", "b"]\n'),
            (["x", 2, None], "x\n2\nnull\n"),
            ("text", "text\n"),
            (True, "true\n"),
            ("", "\n"),
        ],
    )
    def test_plain(self, capsys, value: object, expected: str) -> None:
        _plain().format_value(value)
        assert capsys.readouterr().out == expected

    def test_rich_renders_structures_and_scalars(self, capsys, piped) -> None:
        manager = OutputManager(format=OutputFormat.RICH, no_color=True)
        manager.format_value({"html": "<p>"})
        manager.format_value("cached [text]")
        out = capsys.readouterr().out
        assert "html" in out
        assert "cached [text]" in out


class TestPrintTable:
    HEADERS = ["Folder", "Records"]
    ROWS = [["views", "3"], ["pages", "10"]]

    def test_json_rows_are_objects(self, capsys) -> None:
        OutputManager(format=OutputFormat.JSON).print_table(self.HEADERS, self.ROWS)
        assert json.loads(capsys.readouterr().out) == [
            {"Folder": "views", "Records": "3"},
            {"Folder": "pages", "Records": "10"},
        ]

    def test_plain_is_tab_separated_without_title(self, capsys) -> None:
        _plain().print_table(self.HEADERS, self.ROWS, title="Cache folders")
        assert capsys.readouterr().out == "Folder\tRecords\nviews\t3\npages\t10\n"

    def test_rich_table(self, capsys, piped) -> None:
        OutputManager(format=OutputFormat.RICH, no_color=True).print_table(
            self.HEADERS, self.ROWS, title="Cache folders"
        )
        out = capsys.readouterr().out
        assert "Cache folders" in out
        assert "pages" in out


class TestInstalledManager:
    def test_default_created_lazily(self) -> None:
        assert isinstance(output.get_output(), OutputManager)

    def test_helpers_use_installed_manager(self, capsys) -> None:
        output.set_output(OutputManager(format=OutputFormat.JSON, no_color=True))
        output.format_value([1, 2])
        output.print_table(["A"], [["1"]])
        output.error("oops")
        captured = capsys.readouterr()
        assert captured.out == "[\n  1,\n  2\n]\n" + '[\n  {\n    "A": "1"\n  }\n]\n'
        assert captured.err == "Error: oops\n"

    def test_reset_forgets_manager(self) -> None:
        manager = OutputManager(quiet=True)
        output.set_output(manager)
        output.reset_output()
        assert output.get_output() is not manager
