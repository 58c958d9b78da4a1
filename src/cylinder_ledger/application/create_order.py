"""Application service: Create Order use case.

Orchestrates the flow between repositories and the domain model.
Products are resolved here and their current prices snapshotted onto the
new lines; the Order aggregate validates everything else.
"""

from __future__ import annotations

from cylinder_ledger.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from cylinder_ledger.domain.exceptions import InvalidReference
from cylinder_ledger.domain.model.order import Order
from cylinder_ledger.domain.repository.order_repository import OrderRepository
from cylinder_ledger.domain.repository.product_repository import ProductRepository


class CreateOrderHandler:

    def __init__(
        self,
        order_repo: OrderRepository,
        product_repo: ProductRepository,
    ) -> None:
        self._order_repo = order_repo
        self._product_repo = product_repo

    def handle(
        self,
        customer_id: str,
        delivery_address_id: str,
        item_specs: list[OrderItemSpec] | None = None,
        notes: str | None = None,
    ) -> OrderDTO:
        """Create a new draft order.

        Steps:
        1. Let the Order aggregate validate customer and address.
        2. Resolve each SKU to a Product (fail if unknown).
        3. Add one line per requested item at the *current* catalog price.
        4. Persist and return a DTO.
        """
        order = Order.create(customer_id, delivery_address_id, notes=notes)

        for spec in item_specs or []:
            product = self._product_repo.get_by_id(spec.product_id)
            if product is None:
                raise InvalidReference(f"Product not found: '{spec.product_id}'")
            order.add_line(product, spec.quantity)

        self._order_repo.save(order)
        return order_to_dto(order)
