"""CLI commands for the Order aggregate."""

from __future__ import annotations

from datetime import date, datetime

import click

from cylinder_ledger.application.change_order_status import (
    BulkChangeOrderStatusHandler,
    ChangeOrderStatusHandler,
)
from cylinder_ledger.application.create_order import CreateOrderHandler
from cylinder_ledger.application.dto import OrderDTO, OrderItemSpec
from cylinder_ledger.application.order_lines import (
    AddOrderLineHandler,
    RemoveOrderLineHandler,
    UpdateOrderLineHandler,
)
from cylinder_ledger.application.show_order import ListOrdersHandler, ShowOrderHandler
from cylinder_ledger.domain.exceptions import DomainException
from cylinder_ledger.infrastructure.bootstrap import (
    order_repository,
    order_state_machine,
    product_repository,
    settings,
    stock_operations,
)


def _parse_items(raw: str) -> list[OrderItemSpec]:
    """Parse 'LPG-13KG:3,LPG-6KG:2' into OrderItemSpec list."""
    specs: list[OrderItemSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'SKU:Quantity'."
            )
        sku, qty_str = pair.rsplit(":", 1)
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{sku}'."
            )
        specs.append(OrderItemSpec(product_id=sku.strip(), quantity=qty))
    return specs


def _parse_ids(raw: str) -> list[int]:
    try:
        return [int(part) for part in raw.split(",") if part.strip()]
    except ValueError:
        raise click.BadParameter(f"Invalid order ID list '{raw}'. Expected '1,2,3'.")


def _parse_date(raw: str | None) -> date | None:
    if raw is None:
        return None
    try:
        return datetime.strptime(raw, "%Y-%m-%d").date()
    except ValueError:
        raise click.BadParameter(f"Invalid date '{raw}'. Expected YYYY-MM-DD.")


def _display_order(dto: OrderDTO) -> None:
    """Shared formatting for displaying an order."""
    click.echo(f"Order #{dto.id}  (status={dto.status})")
    click.echo(f"Customer: {dto.customer_id}   Address: {dto.delivery_address_id}")
    click.echo(f"Ordered:  {dto.order_date}")
    if dto.scheduled_date:
        click.echo(f"Delivery: {dto.scheduled_date}")
    if dto.notes:
        click.echo(f"Notes:    {dto.notes}")
    click.echo()

    click.echo(
        f"  {'#':>3} {'SKU':<12} {'Product':<20} {'Qty':>5} {'Price':>14} {'Total':>14} {'From':<8}"
    )
    click.echo(f"  {'-'*82}")
    for line in dto.lines:
        click.echo(
            f"  {line.line_id:>3} {line.product_id:<12} {line.product_name:<20} "
            f"{line.quantity:>5} {line.unit_price:>14} {line.subtotal:>14} "
            f"{line.warehouse_id or '-':<8}"
        )
    click.echo(f"  {'-'*82}")
    click.echo(f"  {'Order Total':<42} {dto.total:>30}")

    if dto.allowed_transitions:
        click.echo(f"Next: {', '.join(dto.allowed_transitions)}")
    if dto.history:
        click.echo()
        click.echo("History:")
        for change in dto.history:
            suffix = f"  ({change.notes})" if change.notes else ""
            click.echo(f"  {change.changed_at}  {change.status:<10} by {change.changed_by}{suffix}")


@click.command("create")
@click.option("--customer", required=True, help="Customer ID.")
@click.option("--address", required=True, help="Delivery address ID.")
@click.option("--items", default=None, help="Items as 'SKU:Qty,SKU:Qty'.")
@click.option("--notes", default=None, help="Free-form order notes.")
def order_create(customer: str, address: str, items: str | None, notes: str | None) -> None:
    """Create a new draft order."""
    specs = _parse_items(items) if items else []

    handler = CreateOrderHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
    )

    try:
        dto = handler.handle(
            customer_id=customer,
            delivery_address_id=address,
            item_specs=specs,
            notes=notes,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} created  (status={dto.status})")
    click.echo()
    _display_order(dto)


@click.command("show")
@click.option("--id", "order_id", required=True, type=int, help="Order ID to display.")
def order_show(order_id: int) -> None:
    """Show details of an existing order."""
    handler = ShowOrderHandler(order_repo=order_repository())

    try:
        dto = handler.handle(order_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("list")
@click.option("--status", default=None, help="Only orders in this status.")
def order_list(status: str | None) -> None:
    """List orders."""
    handler = ListOrdersHandler(order_repo=order_repository())

    try:
        orders = handler.handle(status)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not orders:
        click.echo("No orders found.")
        return

    click.echo(f"{'ID':>5} {'Customer':<16} {'Status':<10} {'Date':<10} {'Lines':>5} {'Total':>16}")
    click.echo("-" * 67)
    for dto in orders:
        click.echo(
            f"{dto.id:>5} {dto.customer_id:<16} {dto.status:<10} {dto.order_date:<10} "
            f"{len(dto.lines):>5} {dto.total:>16}"
        )


@click.command("add-line")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--product", required=True, help="Product SKU.")
@click.option("--quantity", required=True, type=int, help="Number of cylinders.")
@click.option("--price", default=None, help="Unit price override (default: catalog price).")
def order_add_line(order_id: int, product: str, quantity: int, price: str | None) -> None:
    """Add a line to an order (reserves stock if the order is confirmed)."""
    cfg = settings()
    handler = AddOrderLineHandler(
        order_repo=order_repository(),
        product_repo=product_repository(),
        stock_ops=stock_operations(),
        operation_timeout=cfg.operation_timeout,
    )

    try:
        dto = handler.handle(order_id, product, quantity, unit_price=price, actor=cfg.actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("update-line")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--line", "line_id", required=True, type=int, help="Line number.")
@click.option("--quantity", required=True, type=int, help="New number of cylinders.")
def order_update_line(order_id: int, line_id: int, quantity: int) -> None:
    """Change the quantity on an order line."""
    cfg = settings()
    handler = UpdateOrderLineHandler(
        order_repo=order_repository(),
        stock_ops=stock_operations(),
        operation_timeout=cfg.operation_timeout,
    )

    try:
        dto = handler.handle(order_id, line_id, quantity, actor=cfg.actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("remove-line")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--line", "line_id", required=True, type=int, help="Line number.")
def order_remove_line(order_id: int, line_id: int) -> None:
    """Remove a line from an order (releases its reservation)."""
    cfg = settings()
    handler = RemoveOrderLineHandler(
        order_repo=order_repository(),
        stock_ops=stock_operations(),
        operation_timeout=cfg.operation_timeout,
    )

    try:
        dto = handler.handle(order_id, line_id, actor=cfg.actor)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_order(dto)


@click.command("status")
@click.option("--id", "order_id", required=True, type=int, help="Order ID.")
@click.option("--to", "new_status", required=True, help="Target status.")
@click.option("--scheduled-date", default=None, help="Delivery date (YYYY-MM-DD) when scheduling.")
@click.option("--notes", default=None, help="Note recorded in the status history.")
def order_status(
    order_id: int,
    new_status: str,
    scheduled_date: str | None,
    notes: str | None,
) -> None:
    """Move an order to a new status, applying its stock effects."""
    when = _parse_date(scheduled_date)
    handler = ChangeOrderStatusHandler(state_machine=order_state_machine())

    try:
        dto = handler.handle(
            order_id,
            new_status,
            notes=notes,
            scheduled_date=when,
            actor=settings().actor,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Order #{dto.id} is now {dto.status}.")


@click.command("bulk-status")
@click.option("--ids", required=True, help="Order IDs as '1,2,3'.")
@click.option("--to", "new_status", required=True, help="Target status.")
@click.option("--scheduled-date", default=None, help="Delivery date (YYYY-MM-DD) when scheduling.")
@click.option("--notes", default=None, help="Note recorded in each status history.")
def order_bulk_status(
    ids: str,
    new_status: str,
    scheduled_date: str | None,
    notes: str | None,
) -> None:
    """Move several orders to a new status; each succeeds or fails on its own."""
    order_ids = _parse_ids(ids)
    when = _parse_date(scheduled_date)
    handler = BulkChangeOrderStatusHandler(state_machine=order_state_machine())

    try:
        results = handler.handle(
            order_ids,
            new_status,
            notes=notes,
            scheduled_date=when,
            actor=settings().actor,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    failed = 0
    for result in results:
        if result.ok:
            click.echo(f"Order #{result.order_id}: {result.status}")
        else:
            failed += 1
            click.echo(f"Order #{result.order_id}: FAILED — {result.error_type}: {result.error}")
    click.echo(f"{len(results) - failed} updated, {failed} failed.")
    if failed:
        raise SystemExit(1)
