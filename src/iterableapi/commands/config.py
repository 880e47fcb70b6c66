"""Config commands -- view and modify the user configuration file.

The file holds defaults such as the API key source, base URL, request
timeout, cache limits and output format. It never holds the key itself.
"""

from __future__ import annotations

import typer

from iterableapi.config import (
    get_config_dir,
    load_global_config,
    reset_global_config,
    save_global_config,
    set_config_value,
)
from iterableapi.exceptions import ConfigError
from iterableapi.exit_codes import EXIT_INVALID_USAGE
from iterableapi.output import error, format_response, info, success

config_app = typer.Typer(no_args_is_help=True)


@config_app.command("show")
def config_show() -> None:
    """Show the saved configuration.

    Example::

        iterable config show --json
    """
    try:
        config = load_global_config()
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    info(f"Config directory: {get_config_dir()}")
    format_response(config.model_dump(mode="json"))


@config_app.command("set")
def config_set(
    key: str = typer.Argument(help="Config key in dot notation, e.g. 'cache.ttl_seconds'."),
    value: str = typer.Argument(help="Value to set; JSON literals are parsed."),
) -> None:
    """Set one configuration value.

    Example::

        iterable config set api_key_source file:~/.iterable-key
        iterable config set cache.max_entries 5000
    """
    try:
        updated = set_config_value(load_global_config(), key, value)
    except ConfigError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    save_global_config(updated)
    success(f"Set {key} = {value}")


@config_app.command("reset")
def config_reset(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Reset the configuration to defaults."""
    if not yes and not typer.confirm("Reset all config to defaults?"):
        info("Cancelled.")
        raise typer.Exit()
    reset_global_config()
    success("Configuration reset to defaults.")
