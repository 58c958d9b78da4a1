"""Integration tests for the inventory use cases: adjust, transfer and the
stock queries."""

import pytest

from cylinder_ledger.application.add_product import AddProductHandler
from cylinder_ledger.application.add_warehouse import AddWarehouseHandler
from cylinder_ledger.application.adjust_stock import AdjustStockHandler, parse_adjustment_type
from cylinder_ledger.application.show_inventory import (
    ShowInventoryHandler,
    StockAvailabilityHandler,
)
from cylinder_ledger.application.show_movements import ShowMovementsHandler
from cylinder_ledger.application.transfer_stock import TransferStockHandler
from cylinder_ledger.domain.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    InvalidReference,
    ValidationError,
)
from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.stock_movement import AdjustmentType
from cylinder_ledger.domain.model.value_objects import Money
from cylinder_ledger.domain.model.warehouse import Warehouse
from cylinder_ledger.domain.service.stock_operations import StockOperationsService
from tests.fakes import FakeInventoryRepository, FakeProductRepository, FakeWarehouseRepository


def _setup():
    warehouses = FakeWarehouseRepository(
        [Warehouse(id="W1", name="Nairobi"), Warehouse(id="W2", name="Mombasa")]
    )
    products = FakeProductRepository(
        [Product(id="P1", name="13kg Refill", price=Money.of("1200"))]
    )
    inventory = FakeInventoryRepository(
        [InventoryBalance(warehouse_id="W1", product_id="P1", qty_full=70, qty_empty=5)]
    )
    stock_ops = StockOperationsService(inventory)
    return warehouses, products, inventory, stock_ops


class TestAdjustStock:

    def test_adjust_by_id(self):
        warehouses, products, inventory, ops = _setup()
        handler = AdjustStockHandler(ops, warehouses, products)
        row_id = inventory.get_balance("W1", "P1").id

        dto = handler.handle(row_id, -10, 0, "dropped off truck", "damage_loss", actor="tom")

        assert dto.qty_full == 60
        assert dto.available == 60
        [movement] = ShowMovementsHandler(inventory).handle(row_id)
        assert movement.movement_type == "adjustment"
        assert movement.reason == "damage_loss: dropped off truck"
        assert movement.actor == "tom"

    def test_adjust_at_opens_record(self):
        warehouses, products, inventory, ops = _setup()
        handler = AdjustStockHandler(ops, warehouses, products)

        dto = handler.handle_at("W2", "P1", 0, 12, "returns", "received_empty")

        assert (dto.warehouse_id, dto.qty_full, dto.qty_empty) == ("W2", 0, 12)

    def test_adjust_at_unknown_warehouse(self):
        warehouses, products, _, ops = _setup()
        with pytest.raises(InvalidReference, match="Warehouse"):
            AdjustStockHandler(ops, warehouses, products).handle_at("W9", "P1", 1, 0, "x")

    def test_overdraw_rejected(self):
        warehouses, products, inventory, ops = _setup()
        row_id = inventory.get_balance("W1", "P1").id
        with pytest.raises(InvalidQuantity):
            AdjustStockHandler(ops, warehouses, products).handle(row_id, 0, -6, "count")
        assert inventory.get_by_id(row_id).qty_empty == 5

    def test_parse_adjustment_type(self):
        assert parse_adjustment_type("Physical_Count") == AdjustmentType.PHYSICAL_COUNT
        with pytest.raises(ValidationError, match="Unknown adjustment type"):
            parse_adjustment_type("theft")


class TestTransferStock:

    def test_transfer(self):
        warehouses, products, inventory, ops = _setup()
        source, dest = TransferStockHandler(ops, warehouses, products).handle(
            "W1", "W2", "P1", 20, 5, notes="weekly rebalance"
        )
        assert (source.qty_full, source.qty_empty) == (50, 0)
        assert (dest.qty_full, dest.qty_empty) == (20, 5)

    def test_unknown_destination(self):
        warehouses, products, _, ops = _setup()
        with pytest.raises(InvalidReference, match="W7"):
            TransferStockHandler(ops, warehouses, products).handle("W1", "W7", "P1", 1, 0)

    def test_unknown_product(self):
        warehouses, products, _, ops = _setup()
        with pytest.raises(InvalidReference, match="Product"):
            TransferStockHandler(ops, warehouses, products).handle("W1", "W2", "P9", 1, 0)

    def test_cannot_exceed_available(self):
        warehouses, products, inventory, ops = _setup()
        ops.reserve("P1", 60)
        with pytest.raises(InsufficientStock):
            TransferStockHandler(ops, warehouses, products).handle("W1", "W2", "P1", 11, 0)


class TestStockQueries:

    def test_show_inventory_sorted_and_filtered(self):
        warehouses, products, inventory, ops = _setup()
        ops.adjust_at("W2", "P1", 3, 0, "count")
        ops.adjust_at("W1", "P0", 1, 0, "count")

        rows = ShowInventoryHandler(inventory).handle()
        assert [(r.warehouse_id, r.product_id) for r in rows] == [
            ("W1", "P0"), ("W1", "P1"), ("W2", "P1"),
        ]
        assert len(ShowInventoryHandler(inventory).handle("W2")) == 1

    def test_availability_across_warehouses(self):
        warehouses, products, inventory, ops = _setup()
        ops.adjust_at("W2", "P1", 30, 0, "delivery")
        ops.reserve("P1", 70)

        [row] = StockAvailabilityHandler(inventory).handle(["P1"])

        assert (row.total_full, row.total_reserved, row.available) == (100, 70, 30)
        assert row.warehouses == ["W2"]

    def test_availability_unknown_product_is_zero(self):
        _, _, inventory, _ = _setup()
        [row] = StockAvailabilityHandler(inventory).handle(["NOPE"])
        assert row.available == 0
        assert row.warehouses == []

    def test_movements_limit(self):
        _, _, inventory, ops = _setup()
        for _ in range(5):
            ops.reserve("P1", 1)
        assert len(ShowMovementsHandler(inventory).handle(limit=3)) == 3


class TestCatalog:

    def test_add_product(self):
        products = FakeProductRepository()
        product = AddProductHandler(products).handle("LPG-6", "6kg Refill", "650")
        assert products.get_by_id("LPG-6").price == Money.of("650")
        assert product.unit_of_measure == "cylinder"

    def test_duplicate_product(self):
        products = FakeProductRepository()
        AddProductHandler(products).handle("LPG-6", "6kg Refill", "650")
        with pytest.raises(ValidationError, match="already exists"):
            AddProductHandler(products).handle("LPG-6", "Other", "1")

    def test_add_warehouse(self):
        warehouses = FakeWarehouseRepository()
        AddWarehouseHandler(warehouses).handle("W3", "Kisumu")
        assert warehouses.get_by_id("W3").name == "Kisumu"
        with pytest.raises(ValidationError, match="already exists"):
            AddWarehouseHandler(warehouses).handle("W3", "Kisumu 2")
