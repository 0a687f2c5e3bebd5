"""Config commands -- view and modify global configuration.

Provides the ``speccatalog config`` sub-command group for reading,
updating, and resetting the user's global configuration file
(:class:`~speccatalog.models.GlobalConfig`). Settings control the default
output format and the parser defaults (AsyncAPI protocol hint, metadata
preview length, batch concurrency).
"""

from __future__ import annotations

import typer

from speccatalog.exit_codes import EXIT_INVALID_USAGE
from speccatalog.output import error, info, render, success


config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        speccatalog config show
        speccatalog --json config show
    """
    from speccatalog.config import get_config_dir, load_global_config

    config = load_global_config()
    info(f"Config directory: {get_config_dir()}")
    render(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'parser.protocol_hint')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (int or str) and the result is validated against
    :class:`~speccatalog.models.GlobalConfig` before saving.

    Raises:
        typer.Exit: With code 2 if the key path is invalid, the value
            cannot be coerced, or validation fails.

    Example::

        speccatalog config set parser.protocol_hint kafka
        speccatalog config set parser.max_workers 4
        speccatalog config set output.format json
    """
    from pydantic import ValidationError

    from speccatalog.config import load_global_config, save_global_config
    from speccatalog.models import GlobalConfig

    data = load_global_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target[final_key]
    if isinstance(current, int) and not isinstance(current, bool):
        try:
            coerced: object = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    else:
        coerced = value

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        speccatalog --force config reset
    """
    from speccatalog.config import save_global_config
    from speccatalog.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
