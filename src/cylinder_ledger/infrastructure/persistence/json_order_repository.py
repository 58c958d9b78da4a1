"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from pathlib import Path

from cylinder_ledger.domain.exceptions import ConflictError
from cylinder_ledger.domain.model.order import Order, OrderLine, OrderStatus, StatusChange
from cylinder_ledger.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from cylinder_ledger.domain.repository.order_repository import OrderRepository
from cylinder_ledger.infrastructure.persistence.json_file import JsonFile


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, empty=[])

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        return self._next_id(self._file.read())

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._file.read():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_all(self, status: OrderStatus | None = None) -> list[Order]:
        return [
            self._to_domain(raw)
            for raw in self._file.read()
            if status is None or raw["status"] == status.value
        ]

    def save(self, order: Order) -> None:
        with self._file.locked():
            orders = self._file.read()
            order_id = order.id if order.id is not None else self._next_id(orders)
            version = order.version + 1

            # Upsert: replace if exists, otherwise append
            raw_order = self._to_raw(order, order_id, version)
            for i, raw in enumerate(orders):
                if raw["id"] == order_id:
                    if raw.get("version", 0) != order.version:
                        raise ConflictError(f"Order #{order_id} changed since it was read")
                    orders[i] = raw_order
                    break
            else:
                orders.append(raw_order)

            self._file.write(orders)
        order.id = order_id
        order.version = version

    @staticmethod
    def _next_id(orders: list[dict]) -> int:
        return max((o["id"] for o in orders), default=0) + 1

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order, order_id: int, version: int) -> dict:
        return {
            "id": order_id,
            "version": version,
            "customer_id": order.customer_id,
            "delivery_address_id": order.delivery_address_id,
            "status": order.status.value,
            "order_date": order.order_date.isoformat(),
            "scheduled_date": order.scheduled_date.isoformat() if order.scheduled_date else None,
            "notes": order.notes,
            "total_amount": str(order.total_amount.amount),
            "currency": order.total_amount.currency,
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
            "lines": [
                {
                    "line_id": line.line_id,
                    "product_id": line.product_id,
                    "product_name": line.product_name,
                    "quantity": line.quantity.value,
                    "unit_price": str(line.unit_price.amount),
                    "currency": line.unit_price.currency,
                    "warehouse_id": line.warehouse_id,
                }
                for line in order.lines
            ],
            "status_history": [
                {
                    "status": change.status.value,
                    "changed_by": change.changed_by,
                    "changed_at": change.changed_at.isoformat(),
                    "notes": change.notes,
                }
                for change in order.status_history
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw.get("currency", DEFAULT_CURRENCY)
        lines = [
            OrderLine(
                line_id=i["line_id"],
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                unit_price=Money(Decimal(i["unit_price"]), i.get("currency", currency)),
                warehouse_id=i.get("warehouse_id"),
            )
            for i in raw["lines"]
        ]
        history = [
            StatusChange(
                status=OrderStatus(h["status"]),
                changed_by=h["changed_by"],
                changed_at=datetime.fromisoformat(h["changed_at"]),
                notes=h.get("notes"),
            )
            for h in raw.get("status_history", [])
        ]
        scheduled = raw.get("scheduled_date")
        return Order(
            id=raw["id"],
            customer_id=raw["customer_id"],
            delivery_address_id=raw["delivery_address_id"],
            lines=lines,
            status=OrderStatus(raw["status"]),
            order_date=date.fromisoformat(raw["order_date"]),
            scheduled_date=date.fromisoformat(scheduled) if scheduled else None,
            notes=raw.get("notes"),
            total_amount=Money(Decimal(raw["total_amount"]), currency),
            status_history=history,
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            version=raw.get("version", 0),
        )
