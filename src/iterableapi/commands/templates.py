"""Template commands."""

from __future__ import annotations

import typer

from iterableapi.commands import emit, parse_json_object, run_service_call
from iterableapi.output import success

templates_app = typer.Typer(no_args_is_help=True)


@templates_app.command("get")
def templates_get(
    ctx: typer.Context,
    template_id: int = typer.Argument(help="Template id."),
    template_type: str = typer.Option(
        "email", "--type", "-t", help="Template type: email, push, inApp, sms."
    ),
) -> None:
    """Fetch a template."""
    result = run_service_call(ctx, lambda s: s.fetch_template(template_id, template_type))
    emit(result, f"Template {template_id} could not be fetched.")


@templates_app.command("update")
def templates_update(
    ctx: typer.Context,
    template_type: str = typer.Argument(help="Template type: email, push, inApp, sms."),
    body: str = typer.Option(..., "--body", "-b", help="Update payload as a JSON object."),
) -> None:
    """Update a template; the payload must include its templateId."""
    payload = parse_json_object(body, "--body")
    result = run_service_call(ctx, lambda s: s.update_template(template_type, payload))
    emit(result, "Template update failed.")
    success("Template updated.")
