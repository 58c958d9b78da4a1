"""Domain service: Stock Operations Engine.

The only code allowed to change InventoryBalance counters.  Each operation
is a relative (delta) mutation run as read -> validate -> versioned write:

- the row is always read fresh from the repository, never cached;
- the aggregate method validates and mutates the in-memory copy;
- the repository commits it only if nobody else committed in between,
  otherwise it raises ``ConflictError`` and the whole attempt is re-run
  against the new committed value.

Every write carries its StockMovement audit record in the same commit.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

import structlog

from cylinder_ledger.domain.exceptions import (
    ConflictError,
    EntityNotFoundError,
    InsufficientStock,
    InvalidQuantity,
    InvalidReference,
    InvariantViolation,
    ValidationError,
)
from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.stock_movement import (
    AdjustmentType,
    MovementType,
    StockMovement,
)
from cylinder_ledger.domain.repository.inventory_repository import InventoryRepository
from cylinder_ledger.domain.service.deadline import Deadline

logger = structlog.get_logger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3

WarehouseSelectionPolicy = Callable[
    [Sequence[InventoryBalance], int], InventoryBalance | None
]


def lowest_warehouse_first(
    candidates: Sequence[InventoryBalance], quantity: int
) -> InventoryBalance | None:
    """Pick the row with enough available stock and the smallest warehouse ID."""
    eligible = [b for b in candidates if b.available >= quantity]
    if not eligible:
        return None
    return min(eligible, key=lambda b: b.warehouse_id)


@dataclass(frozen=True)
class Reservation:
    """Where a reservation landed."""

    product_id: str
    warehouse_id: str
    quantity: int


class StockOperationsService:

    def __init__(
        self,
        inventory_repo: InventoryRepository,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        selection_policy: WarehouseSelectionPolicy = lowest_warehouse_first,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._inventory_repo = inventory_repo
        self._max_attempts = max_attempts
        self._select = selection_policy

    # --- Adjust -----------------------------------------------------------------

    def adjust(
        self,
        inventory_id: int,
        delta_full: int,
        delta_empty: int,
        reason: str,
        adjustment_type: AdjustmentType = AdjustmentType.OTHER,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> InventoryBalance:
        """Correct the physical counters of an existing balance row."""
        _validate_adjustment(delta_full, delta_empty, reason)

        def attempt() -> InventoryBalance:
            balance = self._inventory_repo.get_by_id(inventory_id)
            if balance is None:
                raise EntityNotFoundError(f"Inventory record #{inventory_id} not found")
            return self._apply_adjustment(
                balance, delta_full, delta_empty, reason, adjustment_type, actor
            )

        return self._retrying("adjust", attempt, deadline)

    def adjust_at(
        self,
        warehouse_id: str,
        product_id: str,
        delta_full: int,
        delta_empty: int,
        reason: str,
        adjustment_type: AdjustmentType = AdjustmentType.OTHER,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> InventoryBalance:
        """Like ``adjust`` but addressed by warehouse/product.

        Creates the zeroed balance row on first use.
        """
        _validate_adjustment(delta_full, delta_empty, reason)

        def attempt() -> InventoryBalance:
            balance = self._inventory_repo.get_balance(warehouse_id, product_id)
            if balance is None:
                balance = InventoryBalance(warehouse_id=warehouse_id, product_id=product_id)
            return self._apply_adjustment(
                balance, delta_full, delta_empty, reason, adjustment_type, actor
            )

        return self._retrying("adjust", attempt, deadline)

    def _apply_adjustment(
        self,
        balance: InventoryBalance,
        delta_full: int,
        delta_empty: int,
        reason: str,
        adjustment_type: AdjustmentType,
        actor: str,
    ) -> InventoryBalance:
        balance.adjust(delta_full, delta_empty)
        movement = _movement(
            balance,
            MovementType.ADJUSTMENT,
            full=delta_full,
            empty=delta_empty,
            reason=f"{adjustment_type.value}: {reason.strip()}",
            actor=actor,
        )
        self._inventory_repo.upsert(balance, [movement])
        logger.info(
            "Stock adjusted",
            inventory_id=balance.id,
            warehouse_id=balance.warehouse_id,
            product_id=balance.product_id,
            delta_full=delta_full,
            delta_empty=delta_empty,
            adjustment_type=adjustment_type.value,
            actor=actor,
        )
        return balance

    # --- Transfer ---------------------------------------------------------------

    def transfer(
        self,
        from_warehouse_id: str,
        to_warehouse_id: str,
        product_id: str,
        qty_full: int,
        qty_empty: int,
        notes: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> tuple[InventoryBalance, InventoryBalance]:
        """Move cylinders between warehouses as one atomic two-row write."""
        if from_warehouse_id == to_warehouse_id:
            raise InvalidReference("Source and destination warehouse must differ")
        if qty_full < 0 or qty_empty < 0:
            raise InvalidQuantity("Transfer quantities cannot be negative")
        if qty_full == 0 and qty_empty == 0:
            raise InvalidQuantity("Transfer must move at least one cylinder")

        reference = f"transfer:{from_warehouse_id}->{to_warehouse_id}"
        reason = notes or ""

        def attempt() -> tuple[InventoryBalance, InventoryBalance]:
            source = self._inventory_repo.get_balance(from_warehouse_id, product_id)
            if source is None:
                raise InsufficientStock(
                    f"No stock of '{product_id}' at warehouse '{from_warehouse_id}'"
                )
            dest = self._inventory_repo.get_balance(to_warehouse_id, product_id)
            if dest is None:
                dest = InventoryBalance(warehouse_id=to_warehouse_id, product_id=product_id)

            source.withdraw(qty_full, qty_empty)
            dest.receive(qty_full, qty_empty)
            movements = [
                _movement(source, MovementType.TRANSFER_OUT, full=-qty_full,
                          empty=-qty_empty, reason=reason, actor=actor,
                          reference=reference),
                _movement(dest, MovementType.TRANSFER_IN, full=qty_full,
                          empty=qty_empty, reason=reason, actor=actor,
                          reference=reference),
            ]
            self._inventory_repo.upsert_many([source, dest], movements)
            return source, dest

        source, dest = self._retrying("transfer", attempt, deadline)
        logger.info(
            "Stock transferred",
            product_id=product_id,
            from_warehouse_id=from_warehouse_id,
            to_warehouse_id=to_warehouse_id,
            qty_full=qty_full,
            qty_empty=qty_empty,
            actor=actor,
        )
        return source, dest

    # --- Order-driven operations --------------------------------------------------

    def reserve(
        self,
        product_id: str,
        quantity: int,
        reference: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> Reservation:
        """Reserve *quantity* full units at whichever warehouse the policy picks."""
        _require_positive(quantity, "Reservation")

        def attempt() -> Reservation:
            candidates = self._inventory_repo.list_for_product(product_id)
            chosen = self._select(candidates, quantity)
            if chosen is None:
                best = max((b.available for b in candidates), default=0)
                raise InsufficientStock(
                    f"Insufficient stock for '{product_id}' "
                    f"(need {quantity}, best warehouse has {best} available)"
                )
            return self._reserve_row(chosen, quantity, reference, actor, MovementType.ORDER_RESERVE)

        return self._retrying("reserve", attempt, deadline)

    def reserve_at(
        self,
        product_id: str,
        quantity: int,
        warehouse_id: str,
        reference: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
        rollback: bool = False,
    ) -> Reservation:
        """Reserve at a specific warehouse."""
        _require_positive(quantity, "Reservation")
        movement_type = MovementType.ROLLBACK if rollback else MovementType.ORDER_RESERVE

        def attempt() -> Reservation:
            balance = self._inventory_repo.get_balance(warehouse_id, product_id)
            if balance is None:
                raise InsufficientStock(
                    f"No stock of '{product_id}' at warehouse '{warehouse_id}'"
                )
            return self._reserve_row(balance, quantity, reference, actor, movement_type)

        return self._retrying("reserve", attempt, deadline)

    def _reserve_row(
        self,
        balance: InventoryBalance,
        quantity: int,
        reference: str | None,
        actor: str,
        movement_type: MovementType,
    ) -> Reservation:
        balance.reserve(quantity)
        movement = _movement(balance, movement_type, reserved=quantity,
                             actor=actor, reference=reference)
        self._inventory_repo.upsert(balance, [movement])
        logger.info(
            "Stock reserved",
            product_id=balance.product_id,
            warehouse_id=balance.warehouse_id,
            quantity=quantity,
            reference=reference,
        )
        return Reservation(balance.product_id, balance.warehouse_id, quantity)

    def release(
        self,
        product_id: str,
        quantity: int,
        warehouse_id: str,
        reference: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
        rollback: bool = False,
    ) -> InventoryBalance:
        """Drop a reservation; full stock is untouched."""
        _require_positive(quantity, "Release")
        movement_type = MovementType.ROLLBACK if rollback else MovementType.ORDER_RELEASE

        def attempt() -> InventoryBalance:
            balance = self._reserved_row(warehouse_id, product_id, "release")
            balance.release(quantity)
            movement = _movement(balance, movement_type, reserved=-quantity,
                                 actor=actor, reference=reference)
            self._inventory_repo.upsert(balance, [movement])
            return balance

        balance = self._retrying("release", attempt, deadline)
        logger.info(
            "Reservation released",
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=quantity,
            reference=reference,
        )
        return balance

    def fulfill(
        self,
        product_id: str,
        quantity: int,
        warehouse_id: str,
        reference: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> InventoryBalance:
        """Ship reserved units out of *warehouse_id*."""
        _require_positive(quantity, "Fulfill")

        def attempt() -> InventoryBalance:
            balance = self._reserved_row(warehouse_id, product_id, "fulfill")
            balance.fulfill(quantity)
            movement = _movement(balance, MovementType.ORDER_FULFILL, full=-quantity,
                                 reserved=-quantity, actor=actor, reference=reference)
            self._inventory_repo.upsert(balance, [movement])
            return balance

        balance = self._retrying("fulfill", attempt, deadline)
        logger.info(
            "Stock fulfilled",
            product_id=product_id,
            warehouse_id=warehouse_id,
            quantity=quantity,
            reference=reference,
        )
        return balance

    def restock(
        self,
        product_id: str,
        quantity: int,
        warehouse_id: str,
        reference: str | None = None,
        actor: str = "system",
    ) -> InventoryBalance:
        """Undo a fulfill.  Only used when rolling back a failed delivery."""
        _require_positive(quantity, "Restock")

        def attempt() -> InventoryBalance:
            balance = self._reserved_row(warehouse_id, product_id, "restock")
            balance.restock(quantity)
            movement = _movement(balance, MovementType.ROLLBACK, full=quantity,
                                 reserved=quantity, actor=actor, reference=reference)
            self._inventory_repo.upsert(balance, [movement])
            return balance

        return self._retrying("restock", attempt, None)

    # --- Internal helpers -------------------------------------------------------

    def _reserved_row(self, warehouse_id: str, product_id: str, operation: str) -> InventoryBalance:
        balance = self._inventory_repo.get_balance(warehouse_id, product_id)
        if balance is None:
            raise InvariantViolation(
                f"Cannot {operation} '{product_id}' at '{warehouse_id}' "
                f"— no inventory record holds the reservation"
            )
        return balance

    def _retrying(
        self,
        operation: str,
        attempt: Callable[[], T],
        deadline: Deadline | None,
    ) -> T:
        deadline = deadline or Deadline.unlimited()
        tries = 1
        while True:
            deadline.check(operation)
            try:
                return attempt()
            except ConflictError:
                if tries >= self._max_attempts:
                    logger.error(
                        "Ledger write conflict, giving up",
                        operation=operation,
                        attempts=tries,
                    )
                    raise
                logger.warning(
                    "Ledger write conflict, retrying",
                    operation=operation,
                    attempt=tries,
                )
                tries += 1
            except InvariantViolation as exc:
                logger.error("Ledger invariant violated", operation=operation, error=str(exc))
                raise


def _movement(
    balance: InventoryBalance,
    movement_type: MovementType,
    full: int = 0,
    empty: int = 0,
    reserved: int = 0,
    reason: str = "",
    actor: str = "system",
    reference: str | None = None,
) -> StockMovement:
    return StockMovement(
        warehouse_id=balance.warehouse_id,
        product_id=balance.product_id,
        movement_type=movement_type,
        qty_full_change=full,
        qty_empty_change=empty,
        qty_reserved_change=reserved,
        reason=reason,
        actor=actor,
        reference=reference,
        inventory_id=balance.id,
    )


def _validate_adjustment(delta_full: int, delta_empty: int, reason: str) -> None:
    if not reason or not reason.strip():
        raise ValidationError("A reason is required for every stock adjustment")
    if delta_full == 0 and delta_empty == 0:
        raise ValidationError("Adjustment must change at least one quantity")


def _require_positive(quantity: int, what: str) -> None:
    if quantity <= 0:
        raise InvalidQuantity(f"{what} quantity must be positive")
