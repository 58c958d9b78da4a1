"""Composition root — wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from cylinder_ledger.domain.service.order_state_machine import OrderStateMachine
from cylinder_ledger.domain.service.stock_operations import StockOperationsService
from cylinder_ledger.infrastructure.config import Settings
from cylinder_ledger.infrastructure.persistence.json_inventory_repository import (
    JsonInventoryRepository,
)
from cylinder_ledger.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from cylinder_ledger.infrastructure.persistence.json_product_repository import (
    JsonProductRepository,
)
from cylinder_ledger.infrastructure.persistence.json_warehouse_repository import (
    JsonWarehouseRepository,
)


def settings() -> Settings:
    # Read on every call so tests can point CYLINDER_LEDGER_DATA_DIR elsewhere.
    return Settings.from_env()


def product_repository() -> JsonProductRepository:
    return JsonProductRepository(settings().data_dir / "products.json")


def warehouse_repository() -> JsonWarehouseRepository:
    return JsonWarehouseRepository(settings().data_dir / "warehouses.json")


def order_repository() -> JsonOrderRepository:
    return JsonOrderRepository(settings().data_dir / "orders.json")


def inventory_repository() -> JsonInventoryRepository:
    return JsonInventoryRepository(settings().data_dir / "inventory.json")


def stock_operations() -> StockOperationsService:
    return StockOperationsService(
        inventory_repo=inventory_repository(),
        max_attempts=settings().max_attempts,
    )


def order_state_machine() -> OrderStateMachine:
    return OrderStateMachine(
        order_repo=order_repository(),
        stock_ops=stock_operations(),
        operation_timeout=settings().operation_timeout,
    )
