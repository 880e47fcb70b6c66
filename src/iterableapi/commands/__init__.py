"""CLI sub-command groups for the ``iterable`` console script.

* :mod:`~iterableapi.commands.users` -- look up and update users.
* :mod:`~iterableapi.commands.lists` -- static lists and subscriptions.
* :mod:`~iterableapi.commands.templates` -- fetch and update templates.
* :mod:`~iterableapi.commands.catalogs` -- catalog items.
* :mod:`~iterableapi.commands.inapp` -- in-app messages.
* :mod:`~iterableapi.commands.config` -- view and modify settings.

Commands that talk to the API share the helpers below: a service is
built from the resolved configuration, one coroutine is run against it,
and the result is printed or turned into a non-zero exit.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Awaitable, Callable, Optional, TypeVar

import typer

from iterableapi.config import build_service_config, resolve_config
from iterableapi.exceptions import IterableError
from iterableapi.exit_codes import EXIT_GENERIC_FAILURE
from iterableapi.output import error, format_response
from iterableapi.service import IterableService

T = TypeVar("T")


def create_service(ctx: typer.Context) -> IterableService:
    """Build an :class:`IterableService` from flags, environment and config files."""
    obj = ctx.obj or {}
    config = resolve_config(
        cli_api_key_source=obj.get("api_key_source"),
        cli_base_url=obj.get("base_url"),
        cli_format=obj.get("format"),
    )
    return IterableService(build_service_config(config))


def run_service_call(
    ctx: typer.Context,
    call: Callable[[IterableService], Awaitable[T]],
) -> T:
    """Run *call* against a freshly opened service and return its result.

    :class:`~iterableapi.exceptions.IterableError` becomes an error message
    and an exit with the error's code.
    """

    async def _run(service: IterableService) -> T:
        async with service:
            return await call(service)

    try:
        return asyncio.run(_run(create_service(ctx)))
    except IterableError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def emit(result: Any, empty_message: str) -> None:
    """Print *result*, or exit 1 with *empty_message* when there is nothing to print."""
    if result is None or result == [] or result == "":
        error(empty_message)
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    format_response(result)


def parse_json_object(text: Optional[str], option: str) -> dict[str, Any]:
    """Parse a JSON object given on the command line.

    Raises:
        typer.BadParameter: If *text* is not a JSON object.
    """
    try:
        value = json.loads(text or "")
    except ValueError as exc:
        raise typer.BadParameter(f"not valid JSON: {exc}", param_hint=option) from None
    if not isinstance(value, dict):
        raise typer.BadParameter("expected a JSON object", param_hint=option)
    return value
