"""Application services: Show Order and List Orders use cases (queries)."""

from __future__ import annotations

from cylinder_ledger.application.change_order_status import parse_status
from cylinder_ledger.application.dto import OrderDTO, order_to_dto
from cylinder_ledger.domain.exceptions import EntityNotFoundError
from cylinder_ledger.domain.repository.order_repository import OrderRepository


class ShowOrderHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, order_id: int) -> OrderDTO:
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order_to_dto(order)


class ListOrdersHandler:

    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    def handle(self, status: str | None = None) -> list[OrderDTO]:
        wanted = parse_status(status) if status else None
        return [order_to_dto(order) for order in self._order_repo.list_all(wanted)]
