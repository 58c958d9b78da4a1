"""Application services: inventory queries.

``ShowInventoryHandler`` lists balance rows; ``StockAvailabilityHandler``
sums what can still be reserved for a product across every warehouse.
"""

from __future__ import annotations

from dataclasses import dataclass

from cylinder_ledger.application.dto import InventoryBalanceDTO, balance_to_dto
from cylinder_ledger.domain.repository.inventory_repository import InventoryRepository


@dataclass(frozen=True)
class StockAvailabilityDTO:
    product_id: str
    total_full: int
    total_reserved: int
    available: int
    warehouses: list[str]


class ShowInventoryHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(self, warehouse_id: str | None = None) -> list[InventoryBalanceDTO]:
        balances = sorted(
            self._inventory_repo.list_all(warehouse_id),
            key=lambda b: (b.warehouse_id, b.product_id),
        )
        return [balance_to_dto(b) for b in balances]


class StockAvailabilityHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(self, product_ids: list[str]) -> list[StockAvailabilityDTO]:
        result: list[StockAvailabilityDTO] = []
        for product_id in product_ids:
            balances = self._inventory_repo.list_for_product(product_id)
            total_full = sum(b.qty_full for b in balances)
            total_reserved = sum(b.qty_reserved for b in balances)
            result.append(
                StockAvailabilityDTO(
                    product_id=product_id,
                    total_full=total_full,
                    total_reserved=total_reserved,
                    available=total_full - total_reserved,
                    warehouses=sorted(b.warehouse_id for b in balances if b.available > 0),
                )
            )
        return result
