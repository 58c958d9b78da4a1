"""Application service: Add Product use case."""

from __future__ import annotations

from cylinder_ledger.domain.exceptions import ValidationError
from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.value_objects import Money
from cylinder_ledger.domain.repository.product_repository import ProductRepository


class AddProductHandler:

    def __init__(self, product_repo: ProductRepository) -> None:
        self._product_repo = product_repo

    def handle(
        self,
        sku: str,
        name: str,
        price: str,
        unit_of_measure: str = "cylinder",
    ) -> Product:
        """Add a new cylinder product to the catalog."""
        product = Product(
            id=sku.strip(),
            name=name.strip(),
            price=Money.of(price),
            unit_of_measure=unit_of_measure,
        )
        if self._product_repo.get_by_id(product.id) is not None:
            raise ValidationError(f"Product '{product.id}' already exists")

        self._product_repo.save(product)
        return product
