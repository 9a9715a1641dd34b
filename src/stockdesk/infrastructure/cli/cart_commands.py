"""CLI commands for the pending reservation cart."""

from __future__ import annotations

from datetime import datetime

import click

from stockdesk.infrastructure.bootstrap import Container
from stockdesk.infrastructure.cli.common import DATETIME_FORMATS, format_datetime, run


def _display_cart(container: Container) -> None:
    builder = container.cart
    if builder.is_empty:
        click.echo("Le panier est vide.")
        return

    click.echo(f"  {'#':>3} {'Product':<28} {'Warehouse':<18} {'Qty':>5} {'Stock':>7}")
    click.echo(f"  {'-'*65}")
    for i, line in enumerate(builder.lines, start=1):
        name = f"{line.product_name} ({line.product_sku})" if line.product_sku else line.product_name
        click.echo(
            f"  {i:>3} {name:<28} {line.warehouse_name:<18} "
            f"{line.quantity:>5} {line.available_stock:>7}"
        )
    click.echo(f"  {'-'*65}")
    click.echo(f"  {builder.count} produit(s), {builder.cart.total_quantity} unité(s)")


@click.command("add")
@click.option("--product", "product_id", required=True, help="Product ID.")
@click.option("--warehouse", "warehouse_id", required=True, help="Warehouse ID.")
@click.option("--quantity", default=1, show_default=True, type=int, help="Quantity to reserve.")
@click.pass_context
def cart_add(ctx: click.Context, product_id: str, warehouse_id: str, quantity: int) -> None:
    """Add a product to the cart (merges with an existing line)."""

    async def work(container: Container) -> None:
        await container.reference.load_reference()
        line = container.cart.add_line(product_id, warehouse_id, quantity)
        click.echo(
            f"Produit ajouté au panier: {line.product_name} @ {line.warehouse_name} "
            f"(quantité {line.quantity}/{line.available_stock})"
        )

    run(ctx, work)


@click.command("show")
@click.pass_context
def cart_show(ctx: click.Context) -> None:
    """Show the lines waiting in the cart."""

    async def work(container: Container) -> None:
        _display_cart(container)

    run(ctx, work)


@click.command("set")
@click.option("--line", "line_no", required=True, type=int, help="Line number (1-based).")
@click.option("--quantity", required=True, type=int, help="New quantity.")
@click.pass_context
def cart_set(ctx: click.Context, line_no: int, quantity: int) -> None:
    """Set the quantity of a cart line."""

    async def work(container: Container) -> None:
        line = container.cart.set_quantity(line_no - 1, quantity)
        click.echo(f"Line {line_no}: {line.product_name} quantity is now {line.quantity}")

    run(ctx, work)


@click.command("adjust")
@click.option("--line", "line_no", required=True, type=int, help="Line number (1-based).")
@click.option("--by", "delta", required=True, type=int, help="Amount to add (negative to remove).")
@click.pass_context
def cart_adjust(ctx: click.Context, line_no: int, delta: int) -> None:
    """Increase or decrease the quantity of a cart line."""

    async def work(container: Container) -> None:
        line = container.cart.update_quantity(line_no - 1, delta)
        click.echo(f"Line {line_no}: {line.product_name} quantity is now {line.quantity}")

    run(ctx, work)


@click.command("remove")
@click.option("--line", "line_no", required=True, type=int, help="Line number (1-based).")
@click.pass_context
def cart_remove(ctx: click.Context, line_no: int) -> None:
    """Remove a line from the cart."""

    async def work(container: Container) -> None:
        container.cart.remove_line(line_no - 1)
        click.echo("Produit retiré du panier")

    run(ctx, work)


@click.command("clear")
@click.pass_context
def cart_clear(ctx: click.Context) -> None:
    """Empty the cart."""

    async def work(container: Container) -> None:
        container.cart.clear()
        click.echo("Panier vidé")

    run(ctx, work)


@click.command("submit")
@click.option("--project", "project_id", default=None, help="Project ID for the whole group.")
@click.option(
    "--expires",
    "expires_at",
    default=None,
    type=click.DateTime(formats=DATETIME_FORMATS),
    help="Expiry date (UTC), e.g. 2026-12-31T18:00.",
)
@click.option("--notes", default=None, help="Notes for the whole group (max 250 chars).")
@click.pass_context
def cart_submit(
    ctx: click.Context,
    project_id: str | None,
    expires_at: datetime | None,
    notes: str | None,
) -> None:
    """Reserve every cart line at once as one group."""

    async def work(container: Container) -> None:
        container.cart.set_shared_fields(project_id, expires_at, notes)
        group = await container.lifecycle.submit(container.cart)
        click.echo(f"Group {group.group_id}  ({group.total_items} item(s))")
        if group.expires_at is not None:
            click.echo(f"Expires: {format_datetime(group.expires_at)}")

    run(ctx, work)
