"""In-app message commands."""

from __future__ import annotations

from typing import Optional

import typer

from iterableapi.commands import emit, run_service_call
from iterableapi.exit_codes import EXIT_INVALID_USAGE
from iterableapi.output import error, success

inapp_app = typer.Typer(no_args_is_help=True)


@inapp_app.command("messages")
def inapp_messages(
    ctx: typer.Context,
    user_id: str = typer.Argument(help="Iterable userId."),
) -> None:
    """Show the latest web in-app messages for a user."""
    result = run_service_call(ctx, lambda s: s.fetch_in_app_messages_for_user(user_id))
    emit(result, f"Could not fetch messages for {user_id}.")


@inapp_app.command("trigger")
def inapp_trigger(
    ctx: typer.Context,
    campaign_id: int = typer.Argument(help="Campaign id."),
    user_id: Optional[str] = typer.Option(None, "--user-id", "-u", help="Recipient userId."),
    email: Optional[str] = typer.Option(None, "--email", "-e", help="Recipient email."),
) -> None:
    """Send an in-app campaign to one recipient."""
    if (email is None) == (user_id is None):
        error("Pass exactly one of --email or --user-id.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    if user_id is not None:
        result = run_service_call(
            ctx, lambda s: s.trigger_in_app_for_user_id(user_id, campaign_id)
        )
    else:
        result = run_service_call(ctx, lambda s: s.trigger_in_app_for_email(email, campaign_id))
    emit(result, "Trigger failed.")


@inapp_app.command("delivered")
def inapp_delivered(
    ctx: typer.Context,
    user_id: str = typer.Argument(help="Iterable userId."),
    message_id: str = typer.Argument(help="In-app message id."),
) -> None:
    """Record that a message was delivered."""
    result = run_service_call(
        ctx, lambda s: s.mark_in_app_message_as_delivered(user_id, message_id)
    )
    emit(result, "Tracking failed.")
    success("Marked as delivered.")


@inapp_app.command("read")
def inapp_read(
    ctx: typer.Context,
    user_id: str = typer.Argument(help="Iterable userId."),
    message_id: str = typer.Argument(help="In-app message id."),
) -> None:
    """Record that a message was opened."""
    result = run_service_call(ctx, lambda s: s.mark_in_app_message_as_read(user_id, message_id))
    emit(result, "Tracking failed.")
    success("Marked as read.")
