import click

from stockdesk.infrastructure.cli.cart_commands import (
    cart_add,
    cart_adjust,
    cart_clear,
    cart_remove,
    cart_set,
    cart_show,
    cart_submit,
)
from stockdesk.infrastructure.cli.reservation_commands import (
    reservation_list,
    reservation_release,
    reservation_release_group,
    reservation_update,
    reservation_update_group,
)
from stockdesk.infrastructure.config import get_settings
from stockdesk.infrastructure.logging import setup_logging


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """stockdesk: product reservations against warehouse stock"""
    obj = ctx.ensure_object(dict)
    if "settings" not in obj:
        obj["settings"] = get_settings()
    settings = obj["settings"]
    setup_logging(settings.log_level, json_format=settings.log_json)


@cli.group()
def cart() -> None:
    """Build the pending reservation cart."""


@cli.group()
def reservation() -> None:
    """Manage existing reservations."""


# Register subcommands
cart.add_command(cart_add)
cart.add_command(cart_adjust)
cart.add_command(cart_clear)
cart.add_command(cart_remove)
cart.add_command(cart_set)
cart.add_command(cart_show)
cart.add_command(cart_submit)
reservation.add_command(reservation_list)
reservation.add_command(reservation_release)
reservation.add_command(reservation_release_group)
reservation.add_command(reservation_update)
reservation.add_command(reservation_update_group)
