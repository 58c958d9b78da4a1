"""CLI commands for inventory management."""

from __future__ import annotations

import click

from cylinder_ledger.application.adjust_stock import AdjustStockHandler
from cylinder_ledger.application.dto import InventoryBalanceDTO
from cylinder_ledger.application.show_inventory import (
    ShowInventoryHandler,
    StockAvailabilityHandler,
)
from cylinder_ledger.application.show_movements import ShowMovementsHandler
from cylinder_ledger.application.transfer_stock import TransferStockHandler
from cylinder_ledger.domain.exceptions import DomainException
from cylinder_ledger.domain.model.stock_movement import AdjustmentType
from cylinder_ledger.infrastructure.bootstrap import (
    inventory_repository,
    product_repository,
    settings,
    stock_operations,
    warehouse_repository,
)


def _echo_balance(dto: InventoryBalanceDTO) -> None:
    click.echo(
        f"  #{dto.id} {dto.warehouse_id}/{dto.product_id}: "
        f"full={dto.qty_full} empty={dto.qty_empty} "
        f"reserved={dto.qty_reserved} available={dto.available}"
    )


@click.command("show")
@click.option("--warehouse", default=None, help="Only this warehouse.")
def inventory_show(warehouse: str | None) -> None:
    """Show current inventory levels."""
    handler = ShowInventoryHandler(inventory_repo=inventory_repository())
    lines = handler.handle(warehouse)

    if not lines:
        click.echo("No inventory records found.")
        return

    click.echo(
        f"{'ID':>4} {'Warehouse':<10} {'Product':<12} {'Full':>6} {'Empty':>6} "
        f"{'Reserved':>9} {'Available':>10}"
    )
    click.echo("-" * 63)
    for line in lines:
        click.echo(
            f"{line.id:>4} {line.warehouse_id:<10} {line.product_id:<12} "
            f"{line.qty_full:>6} {line.qty_empty:>6} {line.qty_reserved:>9} {line.available:>10}"
        )


@click.command("adjust")
@click.option("--id", "inventory_id", default=None, type=int, help="Inventory record ID.")
@click.option("--warehouse", default=None, help="Warehouse ID (with --product, instead of --id).")
@click.option("--product", default=None, help="Product SKU (with --warehouse, instead of --id).")
@click.option("--full", "delta_full", default=0, type=int, help="Change to full cylinders.")
@click.option("--empty", "delta_empty", default=0, type=int, help="Change to empty cylinders.")
@click.option("--reason", required=True, help="Why the stock is being adjusted.")
@click.option(
    "--type",
    "adjustment_type",
    default=AdjustmentType.OTHER.value,
    type=click.Choice([t.value for t in AdjustmentType]),
    help="Kind of adjustment.",
)
def inventory_adjust(
    inventory_id: int | None,
    warehouse: str | None,
    product: str | None,
    delta_full: int,
    delta_empty: int,
    reason: str,
    adjustment_type: str,
) -> None:
    """Adjust full/empty counts by a delta (e.g. --full -3 after damage)."""
    if inventory_id is None and not (warehouse and product):
        raise click.UsageError("Give either --id or both --warehouse and --product.")
    if inventory_id is not None and (warehouse or product):
        raise click.UsageError("--id cannot be combined with --warehouse/--product.")

    cfg = settings()
    handler = AdjustStockHandler(
        stock_ops=stock_operations(),
        warehouse_repo=warehouse_repository(),
        product_repo=product_repository(),
        operation_timeout=cfg.operation_timeout,
    )

    try:
        if inventory_id is not None:
            dto = handler.handle(
                inventory_id, delta_full, delta_empty, reason,
                adjustment_type=adjustment_type, actor=cfg.actor,
            )
        else:
            dto = handler.handle_at(
                warehouse, product, delta_full, delta_empty, reason,
                adjustment_type=adjustment_type, actor=cfg.actor,
            )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Stock adjusted:")
    _echo_balance(dto)


@click.command("transfer")
@click.option("--from", "from_warehouse", required=True, help="Source warehouse ID.")
@click.option("--to", "to_warehouse", required=True, help="Destination warehouse ID.")
@click.option("--product", required=True, help="Product SKU.")
@click.option("--full", "qty_full", default=0, type=int, help="Full cylinders to move.")
@click.option("--empty", "qty_empty", default=0, type=int, help="Empty cylinders to move.")
@click.option("--notes", default=None, help="Transfer notes.")
def inventory_transfer(
    from_warehouse: str,
    to_warehouse: str,
    product: str,
    qty_full: int,
    qty_empty: int,
    notes: str | None,
) -> None:
    """Move cylinders from one warehouse to another."""
    cfg = settings()
    handler = TransferStockHandler(
        stock_ops=stock_operations(),
        warehouse_repo=warehouse_repository(),
        product_repo=product_repository(),
        operation_timeout=cfg.operation_timeout,
    )

    try:
        source, dest = handler.handle(
            from_warehouse, to_warehouse, product, qty_full, qty_empty,
            notes=notes, actor=cfg.actor,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo("Transfer complete:")
    _echo_balance(source)
    _echo_balance(dest)


@click.command("movements")
@click.option("--id", "inventory_id", default=None, type=int, help="Only this inventory record.")
@click.option("--limit", default=20, show_default=True, type=int, help="Newest N movements.")
def inventory_movements(inventory_id: int | None, limit: int) -> None:
    """Show the stock movement log, newest first."""
    handler = ShowMovementsHandler(inventory_repo=inventory_repository())
    movements = handler.handle(inventory_id=inventory_id, limit=limit)

    if not movements:
        click.echo("No stock movements found.")
        return

    for m in movements:
        click.echo(
            f"{m.created_at}  {m.movement_type:<13} {m.warehouse_id}/{m.product_id} "
            f"full={m.qty_full_change:+d} empty={m.qty_empty_change:+d} "
            f"reserved={m.qty_reserved_change:+d}  by {m.actor}"
            + (f"  [{m.reference}]" if m.reference else "")
            + (f"  {m.reason}" if m.reason else "")
        )


@click.command("availability")
@click.argument("products", nargs=-1, required=True)
def inventory_availability(products: tuple[str, ...]) -> None:
    """Show how many full cylinders can still be reserved per product."""
    handler = StockAvailabilityHandler(inventory_repo=inventory_repository())

    click.echo(f"{'Product':<12} {'Full':>6} {'Reserved':>9} {'Available':>10}  Warehouses")
    click.echo("-" * 60)
    for row in handler.handle(list(products)):
        click.echo(
            f"{row.product_id:<12} {row.total_full:>6} {row.total_reserved:>9} "
            f"{row.available:>10}  {', '.join(row.warehouses) or '-'}"
        )
