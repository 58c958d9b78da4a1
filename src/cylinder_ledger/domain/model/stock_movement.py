"""StockMovement — immutable audit record of one ledger mutation."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class MovementType(Enum):
    ADJUSTMENT = "adjustment"
    TRANSFER_IN = "transfer_in"
    TRANSFER_OUT = "transfer_out"
    ORDER_RESERVE = "order_reserve"
    ORDER_RELEASE = "order_release"
    ORDER_FULFILL = "order_fulfill"
    ROLLBACK = "rollback"


class AdjustmentType(Enum):
    RECEIVED_FULL = "received_full"
    RECEIVED_EMPTY = "received_empty"
    PHYSICAL_COUNT = "physical_count"
    DAMAGE_LOSS = "damage_loss"
    OTHER = "other"


@dataclass(frozen=True)
class StockMovement:
    """What changed on which balance row, why, and who did it.

    ``inventory_id`` may be None when the movement is built for a row the
    store has not assigned an id to yet; the store fills it in on write.
    """

    warehouse_id: str
    product_id: str
    movement_type: MovementType
    qty_full_change: int = 0
    qty_empty_change: int = 0
    qty_reserved_change: int = 0
    reason: str = ""
    actor: str = "system"
    reference: str | None = None
    inventory_id: int | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
