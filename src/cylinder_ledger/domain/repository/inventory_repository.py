"""Abstract repository for the stock ledger.

Holds the InventoryBalance rows and their StockMovement audit trail.  Every
write is versioned: a balance whose ``version`` no longer matches the
committed row, or a new balance whose (warehouse, product) pair already
exists, is rejected with ``ConflictError`` and nothing is written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.stock_movement import StockMovement


class InventoryRepository(ABC):

    @abstractmethod
    def get_by_id(self, inventory_id: int) -> InventoryBalance | None:
        """Return a balance row by its ID, or None."""

    @abstractmethod
    def get_balance(self, warehouse_id: str, product_id: str) -> InventoryBalance | None:
        """Return the balance row for a warehouse/product pair, or None."""

    @abstractmethod
    def list_for_product(self, product_id: str) -> list[InventoryBalance]:
        """Return every balance row holding *product_id*."""

    @abstractmethod
    def list_all(self, warehouse_id: str | None = None) -> list[InventoryBalance]:
        """Return every balance row, optionally for one warehouse."""

    @abstractmethod
    def upsert_many(
        self,
        balances: Sequence[InventoryBalance],
        movements: Sequence[StockMovement] = (),
    ) -> None:
        """Atomically write *balances* and append *movements*.

        Either every row and movement is committed or none is.  On success
        each balance gets its ``id`` (if new) and its bumped ``version``.
        """

    def upsert(
        self,
        balance: InventoryBalance,
        movements: Sequence[StockMovement] = (),
    ) -> None:
        """Write a single balance row (see ``upsert_many``)."""
        self.upsert_many([balance], movements)

    @abstractmethod
    def list_movements(
        self,
        inventory_id: int | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        """Return movements newest first, optionally for one balance row."""
