"""CLI commands for existing reservations."""

from __future__ import annotations

from datetime import datetime
from typing import Callable, TypeVar

import click

from stockdesk.application.reservation_list import GroupRow, ReservationList
from stockdesk.domain.exceptions import EntityNotFoundError, ValidationError
from stockdesk.domain.model.reservation import ReservationStatus
from stockdesk.domain.service.payloads import UNSET, GroupEdit, ItemEdit
from stockdesk.infrastructure.bootstrap import Container
from stockdesk.infrastructure.cli.common import DATETIME_FORMATS, format_datetime, run

T = TypeVar("T")

STATUS_CHOICES = ["all"] + [s.value for s in ReservationStatus]


def _display_group(row: GroupRow) -> None:
    marker = "-" if row.is_expanded else ("+" if row.has_multiple_items else " ")
    click.echo(
        f"{marker} Group {row.group_id}  [{row.status_label}]  "
        f"{row.total_items} produit(s)"
        + (f"  projet={row.project}" if row.project else "")
        + (f"  par {row.owner}" if row.owner else "")
    )
    click.echo(
        f"    Expire: {format_datetime(row.expires_at)}"
        + ("  (libérable en totalité)" if row.can_release_all else "")
    )
    if row.notes:
        click.echo(f"    Notes: {row.notes}")
    for item in row.items:
        flag = "*" if item.can_release else " "
        click.echo(
            f"   {flag} {item.item_id:<12} {item.product:<28} {item.warehouse:<16} "
            f"{item.quantity:>5}  {item.status_label}"
        )


async def _locate(reservations: ReservationList, find: Callable[[], T | None]) -> T | None:
    """Walk the pages of the list until *find* returns something."""
    await reservations.refresh()
    while True:
        found = find()
        if found is not None or not reservations.page.has_next:
            return found
        reservations.go_to_page(reservations.filters.page + 1)
        await reservations.refresh()


def _shared_edit_values(
    project_id: str | None,
    clear_project: bool,
    expires_at: datetime | None,
    clear_expiry: bool,
    notes: str | None,
    clear_notes: bool,
) -> dict:
    def pick(value, clear):
        if value is not None and clear:
            raise ValidationError("Cannot both set and clear the same field")
        if clear:
            return None
        return UNSET if value is None else value

    return {
        "project_id": pick(project_id, clear_project),
        "expires_at": pick(expires_at, clear_expiry),
        "notes": pick(notes, clear_notes),
    }


async def _show_projects(container: Container, current_id: str | None, new_id) -> None:
    """Print the current project, even a closed one, and check a new one exists."""
    current = await container.reference.ensure_project(current_id)
    if current is not None:
        click.echo(f"Projet actuel: {current.name} ({current.status})")
    if new_id and await container.reference.ensure_project(new_id) is None:
        raise EntityNotFoundError(f"Projet introuvable: '{new_id}'")


def _shared_options(func):
    func = click.option("--clear-notes", is_flag=True, help="Remove the notes.")(func)
    func = click.option("--notes", default=None, help="New notes (max 250 chars).")(func)
    func = click.option("--clear-expiry", is_flag=True, help="Remove the expiry date.")(func)
    func = click.option(
        "--expires",
        "expires_at",
        default=None,
        type=click.DateTime(formats=DATETIME_FORMATS),
        help="New expiry date (UTC).",
    )(func)
    func = click.option("--clear-project", is_flag=True, help="Detach from the project.")(func)
    func = click.option("--project", "project_id", default=None, help="New project ID.")(func)
    func = click.option("--mine/--all-users", default=True, help="Search only my reservations.")(func)
    return func


@click.command("list")
@click.option("--status", type=click.Choice(STATUS_CHOICES, case_sensitive=False), default="all")
@click.option("--project", "project_id", default=None, help="Filter by project ID.")
@click.option("--product", "product_id", default=None, help="Filter by product ID.")
@click.option("--user", "user_id", default=None, help="Filter by user ID.")
@click.option("--page", default=1, show_default=True, type=int)
@click.option("--limit", default=20, show_default=True, type=int)
@click.option("--mine/--all-users", default=True, help="Only my reservations.")
@click.option("--expand", "expand_all", is_flag=True, help="Show every item of every group.")
@click.pass_context
def reservation_list(
    ctx: click.Context,
    status: str,
    project_id: str | None,
    product_id: str | None,
    user_id: str | None,
    page: int,
    limit: int,
    mine: bool,
    expand_all: bool,
) -> None:
    """List reservation groups."""

    async def work(container: Container) -> None:
        reservations = container.reservations
        reservations.set_filters(
            status=ReservationStatus.parse(status),
            project_id=project_id,
            product_id=product_id,
            user_id=user_id,
            limit=limit,
            mine_only=mine,
        )
        reservations.go_to_page(page)
        result = await reservations.refresh()
        if expand_all:
            for group in reservations.groups:
                reservations.toggle(group.group_id)

        rows = reservations.rows
        if not rows:
            click.echo("Aucune réservation")
            return
        for row in rows:
            _display_group(row)
        click.echo(f"Page {result.page}/{result.total_pages}  ({result.total} groupe(s))")

    run(ctx, work)


@click.command("update")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.option("--quantity", default=None, type=int, help="New quantity.")
@_shared_options
@click.pass_context
def reservation_update(
    ctx: click.Context,
    reservation_id: str,
    quantity: int | None,
    mine: bool,
    project_id: str | None,
    clear_project: bool,
    expires_at: datetime | None,
    clear_expiry: bool,
    notes: str | None,
    clear_notes: bool,
) -> None:
    """Update one reservation (only changed fields are sent)."""

    async def work(container: Container) -> None:
        edit = ItemEdit(
            quantity=UNSET if quantity is None else quantity,
            **_shared_edit_values(
                project_id, clear_project, expires_at, clear_expiry, notes, clear_notes
            ),
        )
        reservations = container.reservations
        reservations.set_filters(mine_only=mine)
        item = await _locate(reservations, lambda: reservations.find_item(reservation_id))
        if item is None:
            raise EntityNotFoundError(f"Reservation {reservation_id} not found")
        await _show_projects(container, item.project_id, edit.project_id)
        await container.lifecycle.update_item(item, edit)

    run(ctx, work)


def _parse_item_quantities(values: tuple[str, ...]) -> dict[str, int]:
    """Parse ('r1=3', 'r2=5') into {reservation_id: quantity}."""
    result: dict[str, int] = {}
    for pair in values:
        if "=" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'ReservationId=Quantity'."
            )
        item_id, qty_str = pair.rsplit("=", 1)
        try:
            result[item_id.strip()] = int(qty_str)
        except ValueError:
            raise click.BadParameter(f"Invalid quantity '{qty_str}' for '{item_id}'.")
    return result


@click.command("update-group")
@click.option("--group", "group_id", required=True, help="Group ID.")
@click.option("--item", "items", multiple=True, help="Member quantity as 'ReservationId=Qty'.")
@_shared_options
@click.pass_context
def reservation_update_group(
    ctx: click.Context,
    group_id: str,
    items: tuple[str, ...],
    mine: bool,
    project_id: str | None,
    clear_project: bool,
    expires_at: datetime | None,
    clear_expiry: bool,
    notes: str | None,
    clear_notes: bool,
) -> None:
    """Update a group's shared fields and member quantities in one request."""
    quantities = _parse_item_quantities(items)

    async def work(container: Container) -> None:
        edit = GroupEdit(
            item_quantities=quantities,
            **_shared_edit_values(
                project_id, clear_project, expires_at, clear_expiry, notes, clear_notes
            ),
        )
        reservations = container.reservations
        reservations.set_filters(mine_only=mine)
        group = await _locate(reservations, lambda: reservations.find_group(group_id))
        if group is None:
            raise EntityNotFoundError(f"Reservation group {group_id} not found")
        await _show_projects(container, group.project_id, edit.project_id)
        await container.lifecycle.update_group(group, edit)

    run(ctx, work)


@click.command("release")
@click.option("--id", "reservation_id", required=True, help="Reservation ID.")
@click.option("--mine/--all-users", default=True, help="Search only my reservations.")
@click.confirmation_option(prompt="Êtes-vous sûr de vouloir libérer cette réservation ?")
@click.pass_context
def reservation_release(ctx: click.Context, reservation_id: str, mine: bool) -> None:
    """Release one reservation (cannot be undone)."""

    async def work(container: Container) -> None:
        reservations = container.reservations
        reservations.set_filters(mine_only=mine)
        item = await _locate(reservations, lambda: reservations.find_item(reservation_id))
        if item is None:
            raise EntityNotFoundError(f"Reservation {reservation_id} not found")
        await container.lifecycle.release_item(item)

    run(ctx, work)


@click.command("release-group")
@click.option("--group", "group_id", required=True, help="Group ID.")
@click.option("--mine/--all-users", default=True, help="Search only my reservations.")
@click.confirmation_option(
    prompt="Êtes-vous sûr de vouloir libérer toutes les réservations de ce groupe ?"
)
@click.pass_context
def reservation_release_group(ctx: click.Context, group_id: str, mine: bool) -> None:
    """Release every reservation of a group (only if all are still RESERVED)."""

    async def work(container: Container) -> None:
        reservations = container.reservations
        reservations.set_filters(mine_only=mine)
        group = await _locate(reservations, lambda: reservations.find_group(group_id))
        if group is None:
            raise EntityNotFoundError(f"Reservation group {group_id} not found")
        await container.lifecycle.release_group(group)

    run(ctx, work)
