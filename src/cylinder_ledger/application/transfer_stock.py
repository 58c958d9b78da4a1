"""Application service: Transfer Stock use case."""

from __future__ import annotations

from cylinder_ledger.application.dto import InventoryBalanceDTO, balance_to_dto
from cylinder_ledger.domain.exceptions import InvalidReference
from cylinder_ledger.domain.repository.product_repository import ProductRepository
from cylinder_ledger.domain.repository.warehouse_repository import WarehouseRepository
from cylinder_ledger.domain.service.deadline import Deadline
from cylinder_ledger.domain.service.stock_operations import StockOperationsService


class TransferStockHandler:

    def __init__(
        self,
        stock_ops: StockOperationsService,
        warehouse_repo: WarehouseRepository,
        product_repo: ProductRepository,
        operation_timeout: float | None = None,
    ) -> None:
        self._stock_ops = stock_ops
        self._warehouse_repo = warehouse_repo
        self._product_repo = product_repo
        self._operation_timeout = operation_timeout

    def handle(
        self,
        from_warehouse_id: str,
        to_warehouse_id: str,
        product_id: str,
        qty_full: int,
        qty_empty: int,
        notes: str | None = None,
        actor: str = "system",
    ) -> tuple[InventoryBalanceDTO, InventoryBalanceDTO]:
        """Move cylinders between warehouses; returns (source, destination)."""
        for warehouse_id in (from_warehouse_id, to_warehouse_id):
            if self._warehouse_repo.get_by_id(warehouse_id) is None:
                raise InvalidReference(f"Warehouse not found: '{warehouse_id}'")
        if self._product_repo.get_by_id(product_id) is None:
            raise InvalidReference(f"Product not found: '{product_id}'")

        source, dest = self._stock_ops.transfer(
            from_warehouse_id,
            to_warehouse_id,
            product_id,
            qty_full,
            qty_empty,
            notes=notes,
            actor=actor,
            deadline=Deadline(self._operation_timeout),
        )
        return balance_to_dto(source), balance_to_dto(dest)
