"""Fixtures shared by the foldercache test suite.

A fake epoch-millisecond clock, registries rooted in ``tmp_path``, a
helper for writing raw record files, XDG isolation for config tests, and
a Typer CLI runner.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest

from foldercache.cache import FolderRegistry
from foldercache.output import reset_output

START_MS = 1_700_000_000_000


class FakeClock:
    """Epoch-millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += round(seconds * 1000)


def write_raw_record(path: Path, payload: Any) -> None:
    """Write *payload* as a record file, bypassing the cache."""
    path.parent.mkdir(parents=True, exist_ok=True)
    text = payload if isinstance(payload, str) else json.dumps(payload)
    path.write_text(text, encoding="utf-8")


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Drop the installed OutputManager; its consoles hold CliRunner's streams."""
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    """A fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    """Cache root directory inside tmp_path."""
    return tmp_path / "cache"


@pytest.fixture
def raw_record():
    """Function writing a record file directly, bypassing the cache."""
    return write_raw_record


@pytest.fixture
def registry(cache_root: Path, clock: FakeClock) -> FolderRegistry:
    """A registry rooted in tmp_path and driven by the fake clock."""
    return FolderRegistry(cache_root, clock=clock)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG directory into tmp_path and unset FOLDERCACHE_ROOT.

    Config lands in ``tmp_path/config/foldercache``, the default cache
    root is ``tmp_path/xdg-cache/foldercache``. Returns ``tmp_path``.
    """
    monkeypatch.setattr("foldercache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path / "xdg-cache"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.delenv("FOLDERCACHE_ROOT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
