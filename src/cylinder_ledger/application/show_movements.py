"""Application service: Stock Movement log (query)."""

from __future__ import annotations

from cylinder_ledger.application.dto import StockMovementDTO, movement_to_dto
from cylinder_ledger.domain.repository.inventory_repository import InventoryRepository


class ShowMovementsHandler:

    def __init__(self, inventory_repo: InventoryRepository) -> None:
        self._inventory_repo = inventory_repo

    def handle(
        self,
        inventory_id: int | None = None,
        limit: int | None = 20,
    ) -> list[StockMovementDTO]:
        movements = self._inventory_repo.list_movements(inventory_id=inventory_id, limit=limit)
        return [movement_to_dto(m) for m in movements]
