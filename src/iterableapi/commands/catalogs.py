"""Catalog commands -- list, replace, merge and delete catalog items."""

from __future__ import annotations

import typer

from iterableapi.commands import emit, parse_json_object, run_service_call
from iterableapi.output import success

catalogs_app = typer.Typer(no_args_is_help=True)


@catalogs_app.command("items")
def catalogs_items(
    ctx: typer.Context,
    catalog: str = typer.Argument(help="Catalog name."),
    page: int = typer.Option(1, "--page", min=1, help="Page number."),
    limit: int = typer.Option(100, "--limit", min=1, help="Items per page."),
) -> None:
    """List one page of items in a catalog."""
    result = run_service_call(ctx, lambda s: s.list_catalog_items(catalog, page, limit))
    emit(result, f"Could not list items in catalog '{catalog}'.")


@catalogs_app.command("put")
def catalogs_put(
    ctx: typer.Context,
    catalog: str = typer.Argument(help="Catalog name."),
    item_id: str = typer.Argument(help="Item id."),
    data: str = typer.Option(..., "--data", "-d", help="Item value as a JSON object."),
) -> None:
    """Create an item or replace its value entirely."""
    item = parse_json_object(data, "--data")
    result = run_service_call(
        ctx, lambda s: s.create_or_replace_catalog_item(catalog, item_id, item)
    )
    emit(result, f"Could not write item '{item_id}'.")


@catalogs_app.command("patch")
def catalogs_patch(
    ctx: typer.Context,
    catalog: str = typer.Argument(help="Catalog name."),
    item_id: str = typer.Argument(help="Item id."),
    data: str = typer.Option(..., "--data", "-d", help="Fields to merge as a JSON object."),
) -> None:
    """Create an item or merge fields into its existing value."""
    item = parse_json_object(data, "--data")
    result = run_service_call(
        ctx, lambda s: s.create_or_update_catalog_item(catalog, item_id, item)
    )
    emit(result, f"Could not update item '{item_id}'.")


@catalogs_app.command("delete")
def catalogs_delete(
    ctx: typer.Context,
    catalog: str = typer.Argument(help="Catalog name."),
    item_ids: list[str] = typer.Argument(help="One or more item ids."),
) -> None:
    """Delete one or more items from a catalog."""
    target = item_ids[0] if len(item_ids) == 1 else list(item_ids)
    result = run_service_call(ctx, lambda s: s.delete_catalog_item(catalog, target))
    emit(result, "Delete failed.")
    success(f"Deleted {len(item_ids)} item(s) from '{catalog}'.")
