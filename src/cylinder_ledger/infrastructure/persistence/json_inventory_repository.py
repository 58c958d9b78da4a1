"""JSON-file-backed implementation of InventoryRepository.

Balances and movements live in one document so a balance write and its
audit movements are committed by the same file replace.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from cylinder_ledger.domain.exceptions import ConflictError
from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.stock_movement import MovementType, StockMovement
from cylinder_ledger.domain.repository.inventory_repository import InventoryRepository
from cylinder_ledger.infrastructure.persistence.json_file import JsonFile


class JsonInventoryRepository(InventoryRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, empty={"balances": [], "movements": []})

    # --- InventoryRepository interface ----------------------------------------

    def get_by_id(self, inventory_id: int) -> InventoryBalance | None:
        for raw in self._file.read()["balances"]:
            if raw["id"] == inventory_id:
                return self._to_domain(raw)
        return None

    def get_balance(self, warehouse_id: str, product_id: str) -> InventoryBalance | None:
        for raw in self._file.read()["balances"]:
            if raw["warehouse_id"] == warehouse_id and raw["product_id"] == product_id:
                return self._to_domain(raw)
        return None

    def list_for_product(self, product_id: str) -> list[InventoryBalance]:
        return [
            self._to_domain(raw)
            for raw in self._file.read()["balances"]
            if raw["product_id"] == product_id
        ]

    def list_all(self, warehouse_id: str | None = None) -> list[InventoryBalance]:
        return [
            self._to_domain(raw)
            for raw in self._file.read()["balances"]
            if warehouse_id is None or raw["warehouse_id"] == warehouse_id
        ]

    def upsert_many(
        self,
        balances: Sequence[InventoryBalance],
        movements: Sequence[StockMovement] = (),
    ) -> None:
        keys = [b.key for b in balances]
        if len(set(keys)) != len(keys):
            raise ValueError("A batch may write each warehouse/product row only once")
        for balance in balances:
            balance.check_invariants()

        with self._file.locked():
            data = self._file.read()
            rows: list[dict] = data["balances"]
            index_by_id = {raw["id"]: i for i, raw in enumerate(rows)}
            existing_keys = {(raw["warehouse_id"], raw["product_id"]) for raw in rows}

            # Check every row before touching any of them.
            for balance in balances:
                if balance.is_new:
                    if balance.key in existing_keys:
                        raise ConflictError(
                            f"Inventory record for {balance.warehouse_id}/"
                            f"{balance.product_id} was created concurrently"
                        )
                    continue
                idx = index_by_id.get(balance.id)
                if idx is None or rows[idx]["version"] != balance.version:
                    raise ConflictError(
                        f"Inventory record #{balance.id} changed since it was read"
                    )

            next_id = max(index_by_id, default=0) + 1
            committed: list[tuple[InventoryBalance, int, int]] = []
            ids_by_key: dict[tuple[str, str], int] = {}
            for balance in balances:
                if balance.is_new:
                    row_id = next_id
                    next_id += 1
                    rows.append({})
                    idx = len(rows) - 1
                else:
                    row_id = balance.id
                    idx = index_by_id[row_id]
                version = balance.version + 1
                rows[idx] = self._to_raw(balance, row_id, version)
                committed.append((balance, row_id, version))
                ids_by_key[balance.key] = row_id

            next_movement_id = max((m["id"] for m in data["movements"]), default=0) + 1
            for movement in movements:
                inventory_id = movement.inventory_id
                if inventory_id is None:
                    inventory_id = ids_by_key.get((movement.warehouse_id, movement.product_id))
                data["movements"].append(
                    self._movement_to_raw(
                        replace(movement, id=next_movement_id, inventory_id=inventory_id)
                    )
                )
                next_movement_id += 1

            self._file.write(data)

        for balance, row_id, version in committed:
            balance.id = row_id
            balance.version = version

    def list_movements(
        self,
        inventory_id: int | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        raws = [
            raw
            for raw in self._file.read()["movements"]
            if inventory_id is None or raw["inventory_id"] == inventory_id
        ]
        raws.sort(key=lambda raw: raw["id"], reverse=True)
        if limit is not None:
            raws = raws[:limit]
        return [self._movement_to_domain(raw) for raw in raws]

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(balance: InventoryBalance, row_id: int, version: int) -> dict:
        return {
            "id": row_id,
            "warehouse_id": balance.warehouse_id,
            "product_id": balance.product_id,
            "qty_full": balance.qty_full,
            "qty_empty": balance.qty_empty,
            "qty_reserved": balance.qty_reserved,
            "version": version,
            "updated_at": balance.updated_at.isoformat() if balance.updated_at else None,
        }

    @staticmethod
    def _to_domain(raw: dict) -> InventoryBalance:
        updated_at = raw.get("updated_at")
        return InventoryBalance(
            id=raw["id"],
            warehouse_id=raw["warehouse_id"],
            product_id=raw["product_id"],
            qty_full=raw["qty_full"],
            qty_empty=raw["qty_empty"],
            qty_reserved=raw.get("qty_reserved", 0),
            version=raw["version"],
            updated_at=datetime.fromisoformat(updated_at) if updated_at else None,
        )

    @staticmethod
    def _movement_to_raw(movement: StockMovement) -> dict:
        return {
            "id": movement.id,
            "inventory_id": movement.inventory_id,
            "warehouse_id": movement.warehouse_id,
            "product_id": movement.product_id,
            "movement_type": movement.movement_type.value,
            "qty_full_change": movement.qty_full_change,
            "qty_empty_change": movement.qty_empty_change,
            "qty_reserved_change": movement.qty_reserved_change,
            "reason": movement.reason,
            "actor": movement.actor,
            "reference": movement.reference,
            "created_at": movement.created_at.isoformat(),
        }

    @staticmethod
    def _movement_to_domain(raw: dict) -> StockMovement:
        return StockMovement(
            id=raw["id"],
            inventory_id=raw["inventory_id"],
            warehouse_id=raw["warehouse_id"],
            product_id=raw["product_id"],
            movement_type=MovementType(raw["movement_type"]),
            qty_full_change=raw["qty_full_change"],
            qty_empty_change=raw["qty_empty_change"],
            qty_reserved_change=raw["qty_reserved_change"],
            reason=raw["reason"],
            actor=raw["actor"],
            reference=raw.get("reference"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )
