"""JSON-file-backed implementation of WarehouseRepository."""

from __future__ import annotations

from pathlib import Path

from cylinder_ledger.domain.model.warehouse import Warehouse
from cylinder_ledger.domain.repository.warehouse_repository import WarehouseRepository
from cylinder_ledger.infrastructure.persistence.json_file import JsonFile


class JsonWarehouseRepository(WarehouseRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, empty=[])

    def get_by_id(self, warehouse_id: str) -> Warehouse | None:
        for raw in self._file.read():
            if raw["id"] == warehouse_id:
                return Warehouse(id=raw["id"], name=raw["name"])
        return None

    def list_all(self) -> list[Warehouse]:
        return [Warehouse(id=raw["id"], name=raw["name"]) for raw in self._file.read()]

    def save(self, warehouse: Warehouse) -> None:
        with self._file.locked():
            records = [r for r in self._file.read() if r["id"] != warehouse.id]
            records.append({"id": warehouse.id, "name": warehouse.name})
            self._file.write(records)
