"""``foldercache config`` -- read and edit the global config file.

Keys use dot notation over :class:`~foldercache.models.GlobalConfig`:
``root``, ``defaults.size``, ``folders.<name>.trim``, ``output.format``.
Values are read as JSON literals (``500``, ``false``, ``null``) and kept
as text otherwise; Pydantic validates the result before it is saved.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, NoReturn

import typer

from foldercache.exceptions import ConfigError, FolderCacheError, InvalidUsageError
from foldercache.output import error, format_value, info, success

if TYPE_CHECKING:
    from foldercache.models import GlobalConfig

config_app = typer.Typer(no_args_is_help=True)

# Free-text settings: "123" stays a string here.
_TEXT_KEYS = frozenset({"root", "output.format"})


def _parse_value(key: str, raw: str) -> Any:
    if key in _TEXT_KEYS:
        return raw
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _assign(data: dict[str, Any], key: str, value: Any) -> None:
    """Set *key* in the dumped config *data*, adding folder presets as needed."""
    from foldercache.models import FolderOptions

    *parents, leaf = key.split(".")
    target = data
    for depth, part in enumerate(parents):
        if depth == 1 and parents[0] == "folders":
            target.setdefault(part, FolderOptions().model_dump(mode="json"))
        target = target.get(part)
        if not isinstance(target, dict):
            raise InvalidUsageError(f"Invalid config key: {key}")
    if leaf not in target:
        raise InvalidUsageError(f"Invalid config key: {key}")
    target[leaf] = value


@config_app.command("show")
def config_show() -> None:
    """Print the global config.

    Example::

        foldercache --json config show
    """
    from foldercache.config import global_config_path

    config = _load_config()
    info(f"Config file: {global_config_path()}")
    format_value(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Dotted key, e.g. 'defaults.size' or 'folders.views.trim'."),
    value: str = typer.Argument(help="New value."),
) -> None:
    """Change one setting.

    ``folders.<name>.<option>`` creates the preset for ``<name>`` when it
    does not exist yet. Exits with code 2 for unknown keys and invalid
    values.

    Example::

        foldercache config set root /var/cache/myapp
        foldercache config set folders.templates.timeout false
    """
    from pydantic import ValidationError

    from foldercache.config import save_global_config
    from foldercache.models import GlobalConfig

    data = _load_config().model_dump(mode="json")
    parsed = _parse_value(key, value)
    try:
        _assign(data, key, parsed)
        updated = GlobalConfig.model_validate(data)
    except InvalidUsageError as exc:
        _fail(exc)
    except ValidationError as exc:
        _fail(InvalidUsageError(f"Validation error for {key}: {exc}"))

    save_global_config(updated)
    success(f"Set {key} = {json.dumps(parsed)}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Restore the default config. Asks first unless ``--force`` is given."""
    from foldercache.config import save_global_config
    from foldercache.models import GlobalConfig

    if not (ctx.obj or {}).get("force") and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")


def _load_config() -> GlobalConfig:
    from foldercache.config import load_global_config

    try:
        return load_global_config()
    except ConfigError as exc:
        _fail(exc)


def _fail(exc: FolderCacheError) -> NoReturn:
    error(str(exc))
    raise typer.Exit(code=exc.exit_code)
