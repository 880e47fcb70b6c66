"""User commands -- cached lookups, profile updates and event history."""

from __future__ import annotations

from typing import Optional

import typer

from iterableapi.commands import emit, parse_json_object, run_service_call
from iterableapi.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from iterableapi.models import LookupOutcome
from iterableapi.output import debug, error, format_response, success

users_app = typer.Typer(no_args_is_help=True)

_FAILURE_MESSAGES = {
    LookupOutcome.ABSENT: "User not found.",
    LookupOutcome.FAILED: "User lookup failed; see warnings above.",
    LookupOutcome.INVALID: "Invalid identifier.",
}


def _require_one(email: Optional[str], user_id: Optional[str]) -> None:
    if (email is None) == (user_id is None):
        error("Pass exactly one of --email or --user-id.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)


@users_app.command("get")
def users_get(
    ctx: typer.Context,
    email: Optional[str] = typer.Option(None, "--email", "-e", help="User email."),
    user_id: Optional[str] = typer.Option(None, "--user-id", "-u", help="Iterable userId."),
) -> None:
    """Fetch a user record by email or userId.

    Example::

        iterable users get --email someone@example.com
    """
    _require_one(email, user_id)
    if email is not None:
        result = run_service_call(ctx, lambda s: s.lookup_user_by_email(email))
    else:
        result = run_service_call(ctx, lambda s: s.lookup_user_by_user_id(user_id))

    debug(f"Lookup outcome: {result.outcome.value}")
    if not result.found:
        error(_FAILURE_MESSAGES.get(result.outcome, "User lookup failed."))
        code = EXIT_INVALID_USAGE if result.outcome is LookupOutcome.INVALID else EXIT_GENERIC_FAILURE
        raise typer.Exit(code=code)
    format_response(result.record)


@users_app.command("update")
def users_update(
    ctx: typer.Context,
    data: str = typer.Option(..., "--data", "-d", help="Data fields as a JSON object."),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="User email."),
    user_id: Optional[str] = typer.Option(None, "--user-id", "-u", help="Iterable userId."),
) -> None:
    """Merge data fields into a user profile.

    Both identifiers may be given; the userId then takes precedence.

    Example::

        iterable users update --email someone@example.com --data '{"plan": "pro"}'
    """
    if email is None and user_id is None:
        error("Pass --email, --user-id or both.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    fields = parse_json_object(data, "--data")
    result = run_service_call(
        ctx, lambda s: s.put_user_data(email=email, user_id=user_id, data_fields=fields)
    )
    emit(result, "User update failed.")
    success("User updated.")


@users_app.command("events")
def users_events(
    ctx: typer.Context,
    email: str = typer.Argument(help="User email."),
) -> None:
    """Show up to 200 recent events for a user."""
    events = run_service_call(ctx, lambda s: s.fetch_user_events(email))
    emit(events, f"No events for {email}.")
