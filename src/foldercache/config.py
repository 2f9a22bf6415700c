"""Where foldercache keeps things, and how it writes them.

* **Directories** -- XDG base directories on Linux and the BSDs,
  ``~/.foldercache/`` elsewhere. See :func:`get_config_dir`,
  :func:`get_cache_dir` and :func:`get_data_dir`.
* **Global config** -- one :class:`~foldercache.models.GlobalConfig`
  JSON file holding the cache root and folder option presets.
* **Cache root** -- :func:`resolve_cache_root` picks the root from a CLI
  flag, ``FOLDERCACHE_ROOT``, the global config, or the cache directory.

Every file foldercache writes, cache records included, goes through
:func:`atomic_write`, so readers see either the old content or the new.
"""

from __future__ import annotations

import contextlib
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from foldercache.exceptions import ConfigError
from foldercache.models import GlobalConfig

_APP_NAME = "foldercache"
_CONFIG_FILENAME = "config.json"
ROOT_ENV_VAR = "FOLDERCACHE_ROOT"

# kind -> (XDG variable, default under $HOME, subdirectory of ~/.foldercache)
_DIRS: dict[str, tuple[str, tuple[str, ...], Optional[str]]] = {
    "config": ("XDG_CONFIG_HOME", (".config",), None),
    "cache": ("XDG_CACHE_HOME", (".cache",), "cache"),
    "data": ("XDG_DATA_HOME", (".local", "share"), "logs"),
}


def _is_xdg_platform() -> bool:
    """Whether this platform uses the XDG Base Directory layout (Linux/BSD)."""
    system = platform.system()
    return system == "Linux" or system.endswith("BSD")


def _app_dir(kind: str) -> Path:
    env_var, home_segments, fallback = _DIRS[kind]
    if not _is_xdg_platform():
        base = Path.home() / f".{_APP_NAME}"
        return base / fallback if fallback else base
    env_value = os.environ.get(env_var)
    base = Path(env_value) if env_value else Path.home().joinpath(*home_segments)
    return base / _APP_NAME


def get_config_dir() -> Path:
    """Directory of the global config file; created on demand.

    ``$XDG_CONFIG_HOME/foldercache`` (``~/.config/foldercache``), or
    ``~/.foldercache`` on macOS and Windows.
    """
    path = _app_dir("config")
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Default cache root, used when nothing else names one.

    ``$XDG_CACHE_HOME/foldercache`` (``~/.cache/foldercache``), or
    ``~/.foldercache/cache`` on macOS and Windows. Not created here:
    folders create their own directories on first write.
    """
    return _app_dir("cache")


def get_data_dir() -> Path:
    """Directory for crash logs; created on demand.

    ``$XDG_DATA_HOME/foldercache`` (``~/.local/share/foldercache``), or
    ``~/.foldercache/logs`` on macOS and Windows.
    """
    path = _app_dir("data")
    path.mkdir(parents=True, exist_ok=True)
    return path


def atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one step.

    The text goes to a hidden temp file beside *path*, is flushed and
    fsynced, then renamed over the target with :func:`os.replace`. On any
    failure the temp file is removed and the original file is untouched.

    Raises:
        OSError: If the directory cannot be created or the write fails.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise


def global_config_path() -> Path:
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Read the global config, or return defaults when there is none.

    Raises:
        ConfigError: If the file cannot be read, is not JSON, or does not
            match :class:`~foldercache.models.GlobalConfig`.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        return GlobalConfig.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    atomic_write(global_config_path(), config.model_dump_json(indent=2) + "\n")


def resolve_cache_root(
    cli_root: Optional[str] = None,
    config: Optional[GlobalConfig] = None,
) -> Path:
    """Pick the absolute cache root.

    The first of these that is set wins: *cli_root*, the
    ``FOLDERCACHE_ROOT`` environment variable, ``root`` in *config*
    (loaded from disk when not given), then :func:`get_cache_dir`.
    ``~`` is expanded. The directory is not created.

    Raises:
        ConfigError: If the global config has to be loaded and is invalid.
    """
    for candidate in (cli_root, os.environ.get(ROOT_ENV_VAR)):
        if candidate:
            return Path(candidate).expanduser().resolve()

    if config is None:
        config = load_global_config()
    if config.root:
        return Path(config.root).expanduser().resolve()
    return get_cache_dir().resolve()
