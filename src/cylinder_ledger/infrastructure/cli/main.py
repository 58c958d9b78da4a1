import click

from cylinder_ledger.infrastructure.bootstrap import settings
from cylinder_ledger.infrastructure.cli.inventory_commands import (
    inventory_adjust,
    inventory_availability,
    inventory_movements,
    inventory_show,
    inventory_transfer,
)
from cylinder_ledger.infrastructure.cli.order_commands import (
    order_add_line,
    order_bulk_status,
    order_create,
    order_list,
    order_remove_line,
    order_show,
    order_status,
    order_update_line,
)
from cylinder_ledger.infrastructure.cli.product_commands import (
    product_add,
    product_list,
    warehouse_add,
    warehouse_list,
)
from cylinder_ledger.infrastructure.logging_config import configure_logging


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Log level for stderr output (default: $CYLINDER_LEDGER_LOG_LEVEL or WARNING).",
)
def cli(log_level: str | None) -> None:
    """Cylinder Ledger — inventory and order tracking for cylinder exchange"""
    try:
        configure_logging(log_level or settings().log_level)
    except ValueError as exc:
        raise click.UsageError(str(exc))


@cli.group()
def order() -> None:
    """Manage orders."""


@cli.group()
def product() -> None:
    """Manage products."""


@cli.group()
def warehouse() -> None:
    """Manage warehouses."""


@cli.group()
def inventory() -> None:
    """Manage inventory."""


# Register subcommands
order.add_command(order_add_line)
order.add_command(order_bulk_status)
order.add_command(order_create)
order.add_command(order_list)
order.add_command(order_remove_line)
order.add_command(order_show)
order.add_command(order_status)
order.add_command(order_update_line)
product.add_command(product_add)
product.add_command(product_list)
warehouse.add_command(warehouse_add)
warehouse.add_command(warehouse_list)
inventory.add_command(inventory_adjust)
inventory.add_command(inventory_availability)
inventory.add_command(inventory_movements)
inventory.add_command(inventory_show)
inventory.add_command(inventory_transfer)
