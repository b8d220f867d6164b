"""Config commands -- view and modify the settings file.

Provides the ``moesifkeys config`` sub-command group for reading and
updating the user's :class:`~moesifkeys.models.Settings` file.
"""

from __future__ import annotations

import typer

from moesifkeys.output import error, format_response, info, print_data, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the effective settings (file plus environment overrides).

    Example::

        moesifkeys config show
        moesifkeys --json config show
    """
    from moesifkeys.config import load_settings, settings_path
    from moesifkeys.exceptions import ConfigError

    try:
        settings = load_settings()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Settings file: {settings_path()}")
    format_response(settings.model_dump(mode="json"))


@config_app.command("path")
def config_path() -> None:
    """Print the settings file location."""
    from moesifkeys.config import settings_path

    print_data(str(settings_path()))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Setting key (dot notation, e.g., 'retry.attempts')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a value in the settings file.

    The value is coerced to the existing field's type (bool, int, float,
    or str) and the result is validated before saving. Environment
    overrides are not written back.

    Example::

        moesifkeys config set microservice.base_url https://keys.internal:9443
        moesifkeys config set retry.delay_seconds 2.5
    """
    import json

    from moesifkeys.config import save_settings, settings_path
    from moesifkeys.models import Settings

    path = settings_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8")) if path.is_file() else {}
        current_settings = Settings.model_validate(data)
    except ValueError as exc:
        error(f"Invalid settings at {path}: {exc}")
        raise typer.Exit(code=2) from None
    data = current_settings.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid setting key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown setting key: {key}")
        raise typer.Exit(code=2)

    current = target[final_key]
    coerced: object
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, (int, float)):
        try:
            coerced = type(current)(value)
        except ValueError:
            error(f"Expected {type(current).__name__} for {key}, got: {value}")
            raise typer.Exit(code=2) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_settings = Settings.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_settings(new_settings)
    success(f"Set {key} = {coerced}")
