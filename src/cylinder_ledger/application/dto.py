"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from cylinder_ledger.domain.model.inventory import InventoryBalance
from cylinder_ledger.domain.model.order import Order
from cylinder_ledger.domain.model.stock_movement import StockMovement
from cylinder_ledger.domain.service.order_state_machine import allowed_transitions


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: a product SKU and how many cylinders of it."""

    product_id: str
    quantity: int


@dataclass(frozen=True)
class OrderLineDTO:
    line_id: int
    product_id: str
    product_name: str
    quantity: int
    unit_price: str  # formatted, e.g. "KSh 1,200.00"
    subtotal: str
    warehouse_id: str | None


@dataclass(frozen=True)
class StatusChangeDTO:
    status: str
    changed_by: str
    changed_at: str
    notes: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the user."""

    id: int
    customer_id: str
    delivery_address_id: str
    status: str
    order_date: str
    scheduled_date: str | None
    lines: list[OrderLineDTO]
    total: str
    notes: str | None
    allowed_transitions: list[str]
    history: list[StatusChangeDTO]


@dataclass(frozen=True)
class InventoryBalanceDTO:
    id: int
    warehouse_id: str
    product_id: str
    qty_full: int
    qty_empty: int
    qty_reserved: int
    available: int


@dataclass(frozen=True)
class StockMovementDTO:
    inventory_id: int | None
    warehouse_id: str
    product_id: str
    movement_type: str
    qty_full_change: int
    qty_empty_change: int
    qty_reserved_change: int
    reason: str
    actor: str
    reference: str | None
    created_at: str


@dataclass(frozen=True)
class TransitionResultDTO:
    order_id: int
    ok: bool
    status: str | None
    error: str | None
    error_type: str | None = None


# --- Mapping --------------------------------------------------------------------


def order_to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        customer_id=order.customer_id,
        delivery_address_id=order.delivery_address_id,
        status=order.status.value,
        order_date=order.order_date.isoformat(),
        scheduled_date=order.scheduled_date.isoformat() if order.scheduled_date else None,
        lines=[
            OrderLineDTO(
                line_id=line.line_id,
                product_id=line.product_id,
                product_name=line.product_name,
                quantity=line.quantity.value,
                unit_price=str(line.unit_price),
                subtotal=str(line.subtotal),
                warehouse_id=line.warehouse_id,
            )
            for line in order.lines
        ],
        total=str(order.total_amount),
        notes=order.notes,
        allowed_transitions=[status.value for status in allowed_transitions(order.status)],
        history=[
            StatusChangeDTO(
                status=change.status.value,
                changed_by=change.changed_by,
                changed_at=change.changed_at.strftime("%Y-%m-%d %H:%M UTC"),
                notes=change.notes,
            )
            for change in order.status_history
        ],
    )


def balance_to_dto(balance: InventoryBalance) -> InventoryBalanceDTO:
    return InventoryBalanceDTO(
        id=balance.id,  # type: ignore[arg-type]
        warehouse_id=balance.warehouse_id,
        product_id=balance.product_id,
        qty_full=balance.qty_full,
        qty_empty=balance.qty_empty,
        qty_reserved=balance.qty_reserved,
        available=balance.available,
    )


def movement_to_dto(movement: StockMovement) -> StockMovementDTO:
    return StockMovementDTO(
        inventory_id=movement.inventory_id,
        warehouse_id=movement.warehouse_id,
        product_id=movement.product_id,
        movement_type=movement.movement_type.value,
        qty_full_change=movement.qty_full_change,
        qty_empty_change=movement.qty_empty_change,
        qty_reserved_change=movement.qty_reserved_change,
        reason=movement.reason,
        actor=movement.actor,
        reference=movement.reference,
        created_at=movement.created_at.strftime("%Y-%m-%d %H:%M UTC"),
    )
