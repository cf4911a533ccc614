"""Config commands -- view and modify global configuration.

Provides the ``outpost config`` sub-command group for reading, updating,
and resetting the global configuration file
(:class:`~outpost.models.GlobalConfig`).
"""

from __future__ import annotations

import typer

from outpost.exit_codes import EXIT_INVALID_USAGE
from outpost.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show current configuration.

    Example::

        outpost config show
        outpost config show --json
    """
    from outpost.config import global_config_path, load_global_config

    config = load_global_config()
    info(f"Config file: {global_config_path()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(
        help="Config key (dot notation, e.g., 'site.host')."
    ),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    Uses dot notation for nested keys. The value is coerced to match the
    existing field's type (bool or int); ``packages.<name>`` adds or
    updates a reported distribution with *value* as its edition. The
    updated config is validated before saving.

    Raises:
        typer.Exit: With :data:`~outpost.exit_codes.EXIT_INVALID_USAGE` if
            the key path is invalid, the value cannot be coerced, or
            validation fails.

    Example::

        outpost config set endpoint https://outpost.example.org/v3/query
        outpost config set site.port 8443
        outpost config set packages.outpost-seo pro
    """
    from outpost.config import load_global_config, save_global_config
    from outpost.models import GlobalConfig

    config = load_global_config()
    data = config.model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=EXIT_INVALID_USAGE)
        target = target[k]

    final_key = keys[-1]
    # packages is a free-form mapping; anything else must already exist.
    if final_key not in target and keys[0] != "packages":
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    current = target.get(final_key)
    if isinstance(current, bool):
        coerced = value.lower() in ("true", "1", "yes")
    elif isinstance(current, int):
        try:
            coerced = int(value)
        except ValueError:
            error(f"Expected integer for {key}, got: {value}")
            raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    else:
        coerced = value  # type: ignore[assignment]

    target[final_key] = coerced

    try:
        new_config = GlobalConfig.model_validate(data)
    except ValueError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None

    save_global_config(new_config)
    success(f"Set {key} = {coerced}")


@config_app.command("reset")
def config_reset(ctx: typer.Context) -> None:
    """Reset configuration to defaults.

    Asks for confirmation unless ``--force`` is active.

    Example::

        outpost config reset --force
    """
    from outpost.config import save_global_config
    from outpost.models import GlobalConfig

    force = ctx.obj.get("force", False) if ctx.obj else False
    if not force:
        confirmed = typer.confirm("Reset all config to defaults?")
        if not confirmed:
            info("Cancelled.")
            raise typer.Exit()

    save_global_config(GlobalConfig())
    success("Configuration reset to defaults.")
