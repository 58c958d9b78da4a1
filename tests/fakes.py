"""In-memory fake repositories for testing.

These implement the same abstract interfaces as the JSON repositories
but keep everything in a dict. No file I/O, no side effects.

Objects are deep-copied on the way in and out, so a caller mutating what it
read never changes the store behind the repository's back, exactly as with
the JSON files.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Sequence
from dataclasses import replace

from cylinder_ledger.domain.exceptions import ConflictError
from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.order import Order, OrderStatus
from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.stock_movement import StockMovement
from cylinder_ledger.domain.model.warehouse import Warehouse
from cylinder_ledger.domain.repository.inventory_repository import InventoryRepository
from cylinder_ledger.domain.repository.order_repository import OrderRepository
from cylinder_ledger.domain.repository.product_repository import ProductRepository
from cylinder_ledger.domain.repository.warehouse_repository import WarehouseRepository


class FakeOrderRepository(OrderRepository):
    """Versioned in-memory orders.

    ``fail_on_save`` fails every save; ``fail_on_save_for`` only the saves
    of the given order ids.
    """

    def __init__(self) -> None:
        self._store: dict[int, Order] = {}
        self._next_id = 1
        self.fail_on_save: Exception | None = None
        self.fail_on_save_for: dict[int, Exception] = {}

    def bump(self, order_id: int) -> None:
        """Commit a change as if another process saved the order."""
        self._store[order_id].version += 1

    def next_id(self) -> int:
        return self._next_id

    def get_by_id(self, order_id: int) -> Order | None:
        order = self._store.get(order_id)
        return copy.deepcopy(order) if order is not None else None

    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        return [
            copy.deepcopy(o)
            for o in self._store.values()
            if status is None or o.status == status
        ]

    def save(self, order: Order) -> None:
        if self.fail_on_save is not None:
            raise self.fail_on_save
        if order.id in self.fail_on_save_for:
            raise self.fail_on_save_for[order.id]
        stored = self._store.get(order.id) if order.id is not None else None
        if stored is not None and stored.version != order.version:
            raise ConflictError(f"Order #{order.id} changed since it was read")
        if order.id is None:
            order.id = self._next_id
            self._next_id += 1
        order.version += 1
        self._store[order.id] = copy.deepcopy(order)


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        for p in products or []:
            self._store[p.id] = p

    def get_by_id(self, product_id: str) -> Product | None:
        return self._store.get(product_id)

    def list_all(self) -> list[Product]:
        return list(self._store.values())

    def save(self, product: Product) -> None:
        self._store[product.id] = product


class FakeWarehouseRepository(WarehouseRepository):

    def __init__(self, warehouses: list[Warehouse] | None = None) -> None:
        self._store: dict[str, Warehouse] = {w.id: w for w in warehouses or []}

    def get_by_id(self, warehouse_id: str) -> Warehouse | None:
        return self._store.get(warehouse_id)

    def list_all(self) -> list[Warehouse]:
        return list(self._store.values())

    def save(self, warehouse: Warehouse) -> None:
        self._store[warehouse.id] = warehouse


class FakeInventoryRepository(InventoryRepository):
    """Versioned in-memory ledger.

    Test hooks:
    - ``before_write`` runs inside every ``upsert_many`` before the version
      check, e.g. to simulate another writer committing first;
    - ``fail_on_write(n, exc)`` makes the n-th write from now raise *exc*.
    """

    def __init__(self, balances: list[InventoryBalance] | None = None) -> None:
        self._rows: dict[int, InventoryBalance] = {}
        self._movements: list[StockMovement] = []
        self._next_id = 1
        self.writes = 0
        self.before_write: Callable[[FakeInventoryRepository], None] | None = None
        self._failures: dict[int, Exception] = {}
        for balance in balances or []:
            self.upsert(balance)

    # --- Test hooks -------------------------------------------------------------

    def fail_on_write(self, nth: int, exc: Exception) -> None:
        self._failures[self.writes + nth] = exc

    def bump(self, warehouse_id: str, product_id: str, **changes: int) -> None:
        """Commit a change as if another process wrote the row."""
        row = self._find(warehouse_id, product_id)
        for name, value in changes.items():
            setattr(row, name, value)
        row.version += 1

    # --- InventoryRepository interface ------------------------------------------

    def get_by_id(self, inventory_id: int) -> InventoryBalance | None:
        row = self._rows.get(inventory_id)
        return copy.deepcopy(row) if row is not None else None

    def get_balance(self, warehouse_id: str, product_id: str) -> InventoryBalance | None:
        row = self._find(warehouse_id, product_id)
        return copy.deepcopy(row) if row is not None else None

    def list_for_product(self, product_id: str) -> list[InventoryBalance]:
        return [copy.deepcopy(r) for r in self._rows.values() if r.product_id == product_id]

    def list_all(self, warehouse_id: str | None = None) -> list[InventoryBalance]:
        return [
            copy.deepcopy(r)
            for r in self._rows.values()
            if warehouse_id is None or r.warehouse_id == warehouse_id
        ]

    def upsert_many(
        self,
        balances: Sequence[InventoryBalance],
        movements: Sequence[StockMovement] = (),
    ) -> None:
        self.writes += 1
        failure = self._failures.pop(self.writes, None)
        if failure is not None:
            raise failure
        if self.before_write is not None:
            hook, self.before_write = self.before_write, None
            hook(self)

        for balance in balances:
            balance.check_invariants()
            if balance.is_new:
                if self._find(*balance.key) is not None:
                    raise ConflictError(f"{balance.key} created concurrently")
            elif self._rows[balance.id].version != balance.version:
                raise ConflictError(f"Inventory record #{balance.id} changed since it was read")

        ids_by_key: dict[tuple[str, str], int] = {}
        for balance in balances:
            if balance.is_new:
                balance.id = self._next_id
                self._next_id += 1
            balance.version += 1
            self._rows[balance.id] = copy.deepcopy(balance)
            ids_by_key[balance.key] = balance.id

        for movement in movements:
            inventory_id = movement.inventory_id or ids_by_key.get(
                (movement.warehouse_id, movement.product_id)
            )
            self._movements.append(
                replace(movement, id=len(self._movements) + 1, inventory_id=inventory_id)
            )

    def list_movements(
        self,
        inventory_id: int | None = None,
        limit: int | None = None,
    ) -> list[StockMovement]:
        found = [
            m for m in reversed(self._movements)
            if inventory_id is None or m.inventory_id == inventory_id
        ]
        return found if limit is None else found[:limit]

    def _find(self, warehouse_id: str, product_id: str) -> InventoryBalance | None:
        for row in self._rows.values():
            if row.warehouse_id == warehouse_id and row.product_id == product_id:
                return row
        return None
