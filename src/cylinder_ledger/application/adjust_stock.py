"""Application service: Adjust Stock use case.

Adjustments are the only ledger change with a free-form cause, so every
one of them is written together with its audit movement.
"""

from __future__ import annotations

from cylinder_ledger.application.dto import InventoryBalanceDTO, balance_to_dto
from cylinder_ledger.domain.exceptions import InvalidReference, ValidationError
from cylinder_ledger.domain.model.stock_movement import AdjustmentType
from cylinder_ledger.domain.repository.product_repository import ProductRepository
from cylinder_ledger.domain.repository.warehouse_repository import WarehouseRepository
from cylinder_ledger.domain.service.deadline import Deadline
from cylinder_ledger.domain.service.stock_operations import StockOperationsService


def parse_adjustment_type(raw: str) -> AdjustmentType:
    try:
        return AdjustmentType(raw.strip().lower())
    except ValueError:
        valid = ", ".join(t.value for t in AdjustmentType)
        raise ValidationError(
            f"Unknown adjustment type '{raw}' (expected one of: {valid})"
        ) from None


class AdjustStockHandler:

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
        inventory_id: int,
        delta_full: int,
        delta_empty: int,
        reason: str,
        adjustment_type: str = AdjustmentType.OTHER.value,
        actor: str = "system",
    ) -> InventoryBalanceDTO:
        """Adjust an existing inventory record."""
        balance = self._stock_ops.adjust(
            inventory_id,
            delta_full,
            delta_empty,
            reason,
            adjustment_type=parse_adjustment_type(adjustment_type),
            actor=actor,
            deadline=Deadline(self._operation_timeout),
        )
        return balance_to_dto(balance)

    def handle_at(
        self,
        warehouse_id: str,
        product_id: str,
        delta_full: int,
        delta_empty: int,
        reason: str,
        adjustment_type: str = AdjustmentType.OTHER.value,
        actor: str = "system",
    ) -> InventoryBalanceDTO:
        """Adjust stock by warehouse and product, opening the record if needed."""
        if self._warehouse_repo.get_by_id(warehouse_id) is None:
            raise InvalidReference(f"Warehouse not found: '{warehouse_id}'")
        if self._product_repo.get_by_id(product_id) is None:
            raise InvalidReference(f"Product not found: '{product_id}'")

        balance = self._stock_ops.adjust_at(
            warehouse_id,
            product_id,
            delta_full,
            delta_empty,
            reason,
            adjustment_type=parse_adjustment_type(adjustment_type),
            actor=actor,
            deadline=Deadline(self._operation_timeout),
        )
        return balance_to_dto(balance)
