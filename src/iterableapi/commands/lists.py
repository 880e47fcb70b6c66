"""List commands -- browse, create, read members of and subscribe to static lists."""

from __future__ import annotations

from typing import Any, Optional

import typer

from iterableapi.commands import emit, run_service_call
from iterableapi.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INVALID_USAGE
from iterableapi.output import error, get_output, print_table, success

lists_app = typer.Typer(no_args_is_help=True)


@lists_app.command("ls")
def lists_ls(ctx: typer.Context) -> None:
    """Show all lists in the project as a table of id, name and type."""
    data = run_service_call(ctx, lambda s: s.fetch_lists())
    lists = data.get("lists") if isinstance(data, dict) else None
    if not isinstance(lists, list):
        error("Could not fetch lists.")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    rows = [
        [str(item.get("id", "")), str(item.get("name", "")), str(item.get("listType", ""))]
        for item in lists
        if isinstance(item, dict)
    ]
    print_table(["id", "name", "type"], rows, title="Lists")


@lists_app.command("create")
def lists_create(
    ctx: typer.Context,
    name: str = typer.Argument(help="List name."),
    description: str = typer.Argument(help="List description."),
) -> None:
    """Create a static list and print the response (which holds the new listId)."""
    result = run_service_call(ctx, lambda s: s.create_static_list(name, description))
    emit(result, "List creation failed.")
    success(f"Created list '{name}'.")


@lists_app.command("users")
def lists_users(
    ctx: typer.Context,
    list_id: int = typer.Argument(help="List id."),
) -> None:
    """Print the email of every member of a list, one per line."""
    emails = run_service_call(ctx, lambda s: s.fetch_list_users(list_id))
    if not emails:
        error(f"No users found for list {list_id}.")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    get_output().print_lines(emails)


@lists_app.command("subscribe")
def lists_subscribe(
    ctx: typer.Context,
    list_id: int = typer.Argument(help="List id."),
    emails: Optional[list[str]] = typer.Option(
        None, "--email", "-e", help="Subscriber email (repeatable)."
    ),
    user_ids: Optional[list[str]] = typer.Option(
        None, "--user-id", "-u", help="Subscriber userId (repeatable)."
    ),
) -> None:
    """Subscribe users to a list by email and/or userId.

    Example::

        iterable lists subscribe 1234 -e a@example.com -e b@example.com
    """
    subscribers: list[dict[str, Any]] = [{"email": e} for e in emails or []]
    subscribers.extend({"userId": u} for u in user_ids or [])
    if not subscribers:
        error("Pass at least one --email or --user-id.")
        raise typer.Exit(code=EXIT_INVALID_USAGE)
    result = run_service_call(ctx, lambda s: s.subscribe_to_list(list_id, subscribers))
    emit(result, "Subscription failed.")
