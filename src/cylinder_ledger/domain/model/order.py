"""Order aggregate — a customer's cylinder delivery request.

The Order is an aggregate root that owns its lines.  Line mutations and the
derived ``total_amount`` are kept consistent here; which status changes are
legal, and what they do to stock, lives in the order state machine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from cylinder_ledger.domain.exceptions import (
    EmptyOrder,
    EntityNotFoundError,
    OrderLocked,
    ValidationError,
)
from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.value_objects import Money, Quantity


class OrderStatus(Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    SCHEDULED = "scheduled"
    EN_ROUTE = "en_route"
    DELIVERED = "delivered"
    INVOICED = "invoiced"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.INVOICED, OrderStatus.CANCELLED)


# Statuses in which every line holds a live reservation.
RESERVED_STATUSES = frozenset({OrderStatus.CONFIRMED, OrderStatus.SCHEDULED})

# Statuses in which lines may no longer change.
LOCKED_STATUSES = frozenset(
    {
        OrderStatus.EN_ROUTE,
        OrderStatus.DELIVERED,
        OrderStatus.INVOICED,
        OrderStatus.CANCELLED,
    }
)


@dataclass
class OrderLine:
    """One product on an order, with the price captured when it was added.

    ``warehouse_id`` records which balance row holds the line's reservation
    once the order is confirmed.
    """

    line_id: int
    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money
    warehouse_id: str | None = None

    @property
    def subtotal(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class StatusChange:
    """One entry of an order's status history."""

    status: OrderStatus
    changed_by: str
    changed_at: datetime
    notes: str | None = None


@dataclass
class Order:
    """Aggregate root for delivery orders.

    Use ``Order.create()`` for new orders.  The ``__init__`` stays simple so
    the repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    customer_id: str
    delivery_address_id: str
    lines: list[OrderLine] = field(default_factory=list)
    status: OrderStatus = OrderStatus.DRAFT
    order_date: date = field(default_factory=date.today)
    scheduled_date: date | None = None
    notes: str | None = None
    total_amount: Money = field(default_factory=Money.zero)
    status_history: list[StatusChange] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer_id: str,
        delivery_address_id: str,
        notes: str | None = None,
        order_date: date | None = None,
    ) -> Order:
        if not customer_id or not customer_id.strip():
            raise ValidationError("Customer is required")
        if not delivery_address_id or not delivery_address_id.strip():
            raise ValidationError("Delivery address is required")

        return Order(
            id=None,
            customer_id=customer_id.strip(),
            delivery_address_id=delivery_address_id.strip(),
            notes=notes,
            order_date=order_date or date.today(),
        )

    # --- Line mutations -------------------------------------------------------

    def add_line(
        self,
        product: Product,
        quantity: int,
        unit_price: Money | None = None,
    ) -> OrderLine:
        """Append a line for *product*, snapshotting its catalog price."""
        self._assert_lines_editable()
        qty = Quantity(quantity)
        if any(line.product_id == product.id for line in self.lines):
            raise ValidationError(
                f"Product '{product.id}' is already on order #{self.id}; "
                f"update that line instead"
            )

        line = OrderLine(
            line_id=max((line.line_id for line in self.lines), default=0) + 1,
            product_id=product.id,
            product_name=product.name,
            quantity=qty,
            unit_price=unit_price if unit_price is not None else product.price,
        )
        self.lines.append(line)
        self._recompute_total()
        return line

    def update_line(self, line_id: int, quantity: int) -> OrderLine:
        self._assert_lines_editable()
        qty = Quantity(quantity)
        line = self.find_line(line_id)
        line.quantity = qty
        self._recompute_total()
        return line

    def remove_line(self, line_id: int) -> OrderLine:
        self._assert_lines_editable()
        line = self.find_line(line_id)
        if len(self.lines) == 1 and self.status != OrderStatus.DRAFT:
            raise EmptyOrder(
                f"Order #{self.id} is {self.status.value}; it must keep at least one line"
            )
        self.lines.remove(line)
        self._recompute_total()
        return line

    def find_line(self, line_id: int) -> OrderLine:
        for line in self.lines:
            if line.line_id == line_id:
                return line
        raise EntityNotFoundError(f"Line {line_id} not found on order #{self.id}")

    # --- Status ---------------------------------------------------------------

    def check_can_confirm(self) -> None:
        if not self.lines:
            raise EmptyOrder(f"Order #{self.id} has no lines to confirm")
        if not self.customer_id:
            raise ValidationError("Customer is required")
        if not self.delivery_address_id:
            raise ValidationError("Delivery address is required")

    def check_can_schedule(self, scheduled_date: date | None, today: date) -> None:
        if scheduled_date is None:
            raise ValidationError("Scheduled date is required")
        if scheduled_date < today:
            raise ValidationError(
                f"Scheduled date {scheduled_date.isoformat()} is in the past"
            )

    def apply_status(
        self,
        new_status: OrderStatus,
        changed_by: str,
        notes: str | None = None,
        scheduled_date: date | None = None,
    ) -> None:
        """Record a status change the state machine has already validated."""
        now = datetime.now(timezone.utc)
        self.status = new_status
        if scheduled_date is not None:
            self.scheduled_date = scheduled_date
        self.status_history.append(
            StatusChange(status=new_status, changed_by=changed_by, changed_at=now, notes=notes)
        )
        self.updated_at = now

    # --- Computed properties --------------------------------------------------

    @property
    def holds_reservation(self) -> bool:
        return self.status in RESERVED_STATUSES

    @property
    def lines_locked(self) -> bool:
        return self.status in LOCKED_STATUSES

    # --- Internal helpers -----------------------------------------------------

    def _assert_lines_editable(self) -> None:
        if self.lines_locked:
            raise OrderLocked(
                f"Order #{self.id} is {self.status.value}; its lines can no longer change"
            )

    def _recompute_total(self) -> None:
        total = Money.zero(self.total_amount.currency)
        for line in self.lines:
            total = total + line.subtotal
        self.total_amount = total
        self.updated_at = datetime.now(timezone.utc)
