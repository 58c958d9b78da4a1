"""InventoryBalance aggregate — the per-warehouse stock ledger row.

There is one InventoryBalance for each (warehouse, product) pair.  It counts
full cylinders on hand, empty cylinders awaiting refill, and the full
cylinders already promised to confirmed orders.

Every mutator validates before it touches a counter, so a rejected call
leaves the row exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from cylinder_ledger.domain.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    InvariantViolation,
)


@dataclass
class InventoryBalance:
    """Aggregate root for one warehouse's stock of one product.

    Invariants:
    - ``qty_full``, ``qty_empty`` and ``qty_reserved`` are never negative
    - ``qty_reserved`` never exceeds ``qty_full``

    ``id`` is None until the store first writes the row; ``version`` is the
    committed version this copy was read at and is bumped by the store.
    """

    warehouse_id: str
    product_id: str
    qty_full: int = 0
    qty_empty: int = 0
    qty_reserved: int = 0
    id: int | None = None
    version: int = 0
    updated_at: datetime | None = None

    @property
    def available(self) -> int:
        return self.qty_full - self.qty_reserved

    @property
    def is_new(self) -> bool:
        return self.id is None

    @property
    def key(self) -> tuple[str, str]:
        return (self.warehouse_id, self.product_id)

    # --- Stock mutations --------------------------------------------------------

    def adjust(self, delta_full: int, delta_empty: int) -> None:
        """Apply a signed correction to the physical counters."""
        new_full = self.qty_full + delta_full
        new_empty = self.qty_empty + delta_empty
        if new_full < 0 or new_empty < 0:
            raise InvalidQuantity(
                f"Adjustment would leave negative stock at {self._label()} "
                f"(full {new_full}, empty {new_empty})"
            )
        if new_full < self.qty_reserved:
            raise InvalidQuantity(
                f"Adjustment would leave {new_full} full at {self._label()} "
                f"but {self.qty_reserved} are reserved"
            )
        self.qty_full = new_full
        self.qty_empty = new_empty
        self._touch()

    def withdraw(self, qty_full: int, qty_empty: int) -> None:
        """Take units out for a transfer.

        Reserved full units stay put: only ``available`` full stock can
        leave the warehouse.
        """
        _require_non_negative(qty_full, qty_empty)
        if qty_full > self.available:
            raise InsufficientStock(
                f"Cannot transfer {qty_full} full from {self._label()} "
                f"— only {self.available} available"
            )
        if qty_empty > self.qty_empty:
            raise InsufficientStock(
                f"Cannot transfer {qty_empty} empty from {self._label()} "
                f"— only {self.qty_empty} on hand"
            )
        self.qty_full -= qty_full
        self.qty_empty -= qty_empty
        self._touch()

    def receive(self, qty_full: int, qty_empty: int) -> None:
        """Take units in from a transfer."""
        _require_non_negative(qty_full, qty_empty)
        self.qty_full += qty_full
        self.qty_empty += qty_empty
        self._touch()

    def reserve(self, quantity: int) -> None:
        """Earmark full units for a confirmed order."""
        _require_positive(quantity, "Reservation")
        if quantity > self.available:
            raise InsufficientStock(
                f"Insufficient stock at {self._label()} "
                f"(need {quantity}, have {self.available} available)"
            )
        self.qty_reserved += quantity
        self._touch()

    def release(self, quantity: int) -> None:
        """Give back a reservation without moving stock."""
        _require_positive(quantity, "Release")
        if quantity > self.qty_reserved:
            raise InvariantViolation(
                f"Cannot release {quantity} at {self._label()} "
                f"— only {self.qty_reserved} reserved"
            )
        self.qty_reserved -= quantity
        self._touch()

    def fulfill(self, quantity: int) -> None:
        """Ship reserved units: they leave the warehouse and the
        reservation is cleared in the same step."""
        _require_positive(quantity, "Fulfill")
        if quantity > self.qty_reserved or quantity > self.qty_full:
            raise InvariantViolation(
                f"Cannot fulfill {quantity} at {self._label()} "
                f"— full {self.qty_full}, reserved {self.qty_reserved}"
            )
        self.qty_full -= quantity
        self.qty_reserved -= quantity
        self._touch()

    def restock(self, quantity: int) -> None:
        """Inverse of ``fulfill``; only used to roll back a failed delivery."""
        _require_positive(quantity, "Restock")
        self.qty_full += quantity
        self.qty_reserved += quantity
        self._touch()

    # --- Checks -----------------------------------------------------------------

    def check_invariants(self) -> None:
        if min(self.qty_full, self.qty_empty, self.qty_reserved) < 0:
            raise InvariantViolation(f"Negative counter at {self._label()}")
        if self.qty_reserved > self.qty_full:
            raise InvariantViolation(
                f"Reserved {self.qty_reserved} exceeds full {self.qty_full} "
                f"at {self._label()}"
            )

    # --- Internal helpers -------------------------------------------------------

    def _label(self) -> str:
        return f"{self.warehouse_id}/{self.product_id}"

    def _touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)


def _require_positive(quantity: int, what: str) -> None:
    if quantity <= 0:
        raise InvalidQuantity(f"{what} quantity must be positive")


def _require_non_negative(qty_full: int, qty_empty: int) -> None:
    if qty_full < 0 or qty_empty < 0:
        raise InvalidQuantity("Transfer quantities cannot be negative")
