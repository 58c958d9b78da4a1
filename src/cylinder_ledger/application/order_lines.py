"""Application services: add, update and remove order lines.

Draft orders hold no stock, so only the aggregate changes.  Confirmed and
scheduled orders hold a reservation per line; there the line change and the
matching reserve/release run together in a StockUnitOfWork so the ledger and
the order never disagree.
"""

from __future__ import annotations

from cylinder_ledger.application.dto import OrderDTO, order_to_dto
from cylinder_ledger.domain.exceptions import (
    EntityNotFoundError,
    InvalidReference,
    InvariantViolation,
)
from cylinder_ledger.domain.model.order import Order, OrderLine
from cylinder_ledger.domain.model.value_objects import Money
from cylinder_ledger.domain.repository.order_repository import OrderRepository
from cylinder_ledger.domain.repository.product_repository import ProductRepository
from cylinder_ledger.domain.service.deadline import Deadline
from cylinder_ledger.domain.service.stock_operations import StockOperationsService
from cylinder_ledger.domain.service.unit_of_work import StockUnitOfWork


class _OrderLineHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        stock_ops: StockOperationsService,
        operation_timeout: float | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._stock_ops = stock_ops
        self._operation_timeout = operation_timeout

    def _load(self, order_id: int) -> Order:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def _unit_of_work(self, order: Order, actor: str) -> StockUnitOfWork:
        return StockUnitOfWork(
            self._stock_ops,
            reference=f"order:{order.id}",
            actor=actor,
            deadline=Deadline(self._operation_timeout),
        )


def _reserving_warehouse(line: OrderLine) -> str:
    if line.warehouse_id is None:
        raise InvariantViolation(
            f"Line {line.line_id} ({line.product_id}) has no reserving warehouse"
        )
    return line.warehouse_id


class AddOrderLineHandler(_OrderLineHandler):

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
        stock_ops: StockOperationsService,
        operation_timeout: float | None = None,
    ) -> None:
        super().__init__(order_repo, stock_ops, operation_timeout)
        self._product_repo = product_repo

    def handle(
        self,
        order_id: int,
        product_id: str,
        quantity: int,
        unit_price: str | None = None,
        actor: str = "system",
    ) -> OrderDTO:
        order = self._load(order_id)
        product = self._product_repo.get_by_id(product_id)
        if product is None:
            raise InvalidReference(f"Product not found: '{product_id}'")

        price = Money.of(unit_price) if unit_price is not None else None
        line = order.add_line(product, quantity, price)

        with self._unit_of_work(order, actor) as uow:
            if order.holds_reservation:
                reservation = uow.reserve(line.product_id, line.quantity.value)
                line.warehouse_id = reservation.warehouse_id
            self._order_repo.save(order)
        return order_to_dto(order)


class UpdateOrderLineHandler(_OrderLineHandler):

    def handle(
        self,
        order_id: int,
        line_id: int,
        quantity: int,
        actor: str = "system",
    ) -> OrderDTO:
        order = self._load(order_id)
        line = order.find_line(line_id)
        old_quantity = line.quantity.value
        order.update_line(line_id, quantity)

        with self._unit_of_work(order, actor) as uow:
            if order.holds_reservation and quantity != old_quantity:
                uow.release(line.product_id, old_quantity, _reserving_warehouse(line))
                reservation = uow.reserve(line.product_id, quantity)
                line.warehouse_id = reservation.warehouse_id
            self._order_repo.save(order)
        return order_to_dto(order)


class RemoveOrderLineHandler(_OrderLineHandler):

    def handle(self, order_id: int, line_id: int, actor: str = "system") -> OrderDTO:
        order = self._load(order_id)
        line = order.remove_line(line_id)

        with self._unit_of_work(order, actor) as uow:
            if order.holds_reservation:
                uow.release(line.product_id, line.quantity.value, _reserving_warehouse(line))
            self._order_repo.save(order)
        return order_to_dto(order)
