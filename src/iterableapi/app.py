"""Typer application and entry point for the ``iterable`` console script.

The root callback turns the global flags into an
:class:`~iterableapi.output.OutputManager`, routes ``iterableapi`` log
records to stderr through Rich, and stores the connection overrides in
``ctx.obj`` for :func:`~iterableapi.commands.create_service`.

Sub-command groups live in :mod:`iterableapi.commands`.
"""

from __future__ import annotations

import logging
import signal
import sys
from typing import Any, Optional

import typer

from iterableapi import __version__
from iterableapi.commands.catalogs import catalogs_app
from iterableapi.commands.config import config_app
from iterableapi.commands.inapp import inapp_app
from iterableapi.commands.lists import lists_app
from iterableapi.commands.templates import templates_app
from iterableapi.commands.users import users_app
from iterableapi.exceptions import IterableError
from iterableapi.exit_codes import EXIT_GENERIC_FAILURE
from iterableapi.output import OutputFormat, OutputManager, error, set_output

app = typer.Typer(
    name="iterable",
    help="Work with the Iterable API from the shell.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

app.add_typer(users_app, name="users", help="Look up and update users.")
app.add_typer(lists_app, name="lists", help="Static lists and subscriptions.")
app.add_typer(templates_app, name="templates", help="Message templates.")
app.add_typer(catalogs_app, name="catalogs", help="Catalog items.")
app.add_typer(inapp_app, name="inapp", help="In-app messages.")
app.add_typer(config_app, name="config", help="Configuration management.")

_LOG_HANDLER_ATTR = "_iterableapi_cli"


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"iterable {__version__}")
        raise typer.Exit()


def _install_log_handler(output: OutputManager) -> None:
    """Send ``iterableapi`` log records to stderr, replacing any earlier CLI handler."""
    logger = logging.getLogger("iterableapi")
    for handler in list(logger.handlers):
        if getattr(handler, _LOG_HANDLER_ATTR, False):
            logger.removeHandler(handler)
    handler = output.log_handler()
    setattr(handler, _LOG_HANDLER_ATTR, True)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if output.is_verbose else logging.INFO)


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    api_key_source: Optional[str] = typer.Option(
        None,
        "--api-key-source",
        help="Where to read the API key: env:VAR, file:/path or prompt.",
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="API base URL."),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress non-essential output."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug output."),
) -> None:
    """Configure output and logging, and stash connection overrides in ``ctx.obj``."""
    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    output = OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose)
    set_output(output)
    _install_log_handler(output)

    ctx.ensure_object(dict)
    ctx.obj["api_key_source"] = api_key_source
    ctx.obj["base_url"] = base_url
    ctx.obj["format"] = None if fmt == OutputFormat.AUTO else fmt.value


def _setup_signal_handlers() -> None:
    def _handler(signum: int, frame: Any) -> None:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def main() -> None:
    """Console-script entry point.

    :class:`~iterableapi.exceptions.IterableError` escaping a command exits
    with the error's ``exit_code``.
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except IterableError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        error(f"Unexpected error: {exc}")
        sys.exit(EXIT_GENERIC_FAILURE)
