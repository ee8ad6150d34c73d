"""Config commands -- view and modify the user configuration.

Provides the ``specshift config`` sub-command group. Settings are stored
as JSON in the XDG config directory and form the lowest-precedence layer
of :func:`~specshift.config.resolve_config`.
"""

from __future__ import annotations

from typing import Any

import typer
from pydantic import ValidationError as PydanticValidationError

from specshift.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show(
    resolved: bool = typer.Option(
        False, "--resolved", help="Show the effective config after env and project overrides."
    ),
) -> None:
    """Show the current configuration.

    Example::

        specshift config show
        specshift --json config show --resolved
    """
    from specshift.config import get_config_dir, load_service_config, resolve_config

    config = resolve_config() if resolved else load_service_config()
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key (dot notation, e.g., 'store.url')."),
    value: str = typer.Argument(help="Value to set."),
) -> None:
    """Set a configuration value.

    The value is coerced to the type of the field it replaces; list fields
    take a comma-separated value.

    Raises:
        typer.Exit: With code 2 if the key is unknown or the value does not
            validate.

    Example::

        specshift config set port 8080
        specshift config set store.url https://xyz.supabase.co
        specshift config set resolver.allow_external_refs false
        specshift config set allowed_origins http://localhost:3000,https://app.example.com
    """
    from specshift.config import load_service_config, save_service_config
    from specshift.models import ServiceConfig

    data = load_service_config().model_dump(mode="json")

    keys = key.split(".")
    target = data
    for k in keys[:-1]:
        if k not in target or not isinstance(target[k], dict):
            error(f"Invalid config key: {key}")
            raise typer.Exit(code=2)
        target = target[k]

    final_key = keys[-1]
    if final_key not in target or isinstance(target[final_key], dict):
        error(f"Unknown config key: {key}")
        raise typer.Exit(code=2)

    try:
        coerced = _coerce(target[final_key], value)
    except ValueError:
        error(f"Expected {type(target[final_key]).__name__} for {key}, got: {value}")
        raise typer.Exit(code=2) from None
    target[final_key] = coerced

    try:
        new_config = ServiceConfig.model_validate(data)
    except PydanticValidationError as exc:
        error(f"Validation error: {exc}")
        raise typer.Exit(code=2) from None

    save_service_config(new_config)
    success(f"Set {key} = {coerced}")


def _coerce(current: Any, value: str) -> Any:
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    if isinstance(current, list):
        return [part.strip() for part in value.split(",") if part.strip()]
    return value


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Reset the user configuration to defaults.

    Example::

        specshift config reset --yes
    """
    from specshift.config import save_service_config
    from specshift.models import ServiceConfig

    if not yes and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()

    save_service_config(ServiceConfig())
    success("Configuration reset to defaults.")
