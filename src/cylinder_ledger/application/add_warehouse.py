"""Application service: Add Warehouse use case."""

from __future__ import annotations

from cylinder_ledger.domain.exceptions import ValidationError
from cylinder_ledger.domain.model.warehouse import Warehouse
from cylinder_ledger.domain.repository.warehouse_repository import WarehouseRepository


class AddWarehouseHandler:

    def __init__(self, warehouse_repo: WarehouseRepository) -> None:
        self._warehouse_repo = warehouse_repo

    def handle(self, warehouse_id: str, name: str) -> Warehouse:
        warehouse = Warehouse(id=warehouse_id.strip(), name=name.strip())
        if self._warehouse_repo.get_by_id(warehouse.id) is not None:
            raise ValidationError(f"Warehouse '{warehouse.id}' already exists")

        self._warehouse_repo.save(warehouse)
        return warehouse
