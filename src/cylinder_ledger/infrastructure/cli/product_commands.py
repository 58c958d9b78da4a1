"""CLI commands for the product catalog and warehouses."""

from __future__ import annotations

import click

from cylinder_ledger.application.add_product import AddProductHandler
from cylinder_ledger.application.add_warehouse import AddWarehouseHandler
from cylinder_ledger.domain.exceptions import DomainException
from cylinder_ledger.infrastructure.bootstrap import product_repository, warehouse_repository


@click.command("add")
@click.option("--sku", required=True, help="Product SKU, e.g. LPG-13KG.")
@click.option("--name", required=True, help="Product name.")
@click.option("--price", required=True, help="Price (e.g. 1200.00).")
@click.option("--unit", default="cylinder", show_default=True, help="Unit of measure.")
def product_add(sku: str, name: str, price: str, unit: str) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(product_repo=product_repository())

    try:
        product = handler.handle(sku=sku, name=name, price=price, unit_of_measure=unit)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product {product.id} '{product.name}' added at {product.price}")


@click.command("list")
def product_list() -> None:
    """List all products in the catalog."""
    repo = product_repository()
    products = repo.list_all()

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'SKU':<12} {'Name':<20} {'Price':>14}")
    click.echo("-" * 48)
    for p in products:
        click.echo(f"{p.id:<12} {p.name:<20} {str(p.price):>14}")


@click.command("add")
@click.option("--id", "warehouse_id", required=True, help="Warehouse ID, e.g. WH-NBO.")
@click.option("--name", required=True, help="Warehouse name.")
def warehouse_add(warehouse_id: str, name: str) -> None:
    """Register a warehouse."""
    handler = AddWarehouseHandler(warehouse_repo=warehouse_repository())

    try:
        wh = handler.handle(warehouse_id=warehouse_id, name=name)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Warehouse {wh.id} '{wh.name}' added")


@click.command("list")
def warehouse_list() -> None:
    """List all warehouses."""
    warehouses = warehouse_repository().list_all()

    if not warehouses:
        click.echo("No warehouses found.")
        return

    for wh in warehouses:
        click.echo(f"{wh.id:<10} {wh.name}")
