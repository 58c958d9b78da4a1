"""JSON-file-backed implementation of ProductRepository."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.value_objects import DEFAULT_CURRENCY, Money
from cylinder_ledger.domain.repository.product_repository import ProductRepository
from cylinder_ledger.infrastructure.persistence.json_file import JsonFile


class JsonProductRepository(ProductRepository):

    def __init__(self, file_path: Path) -> None:
        self._file = JsonFile(file_path, empty=[])

    # --- ProductRepository interface ------------------------------------------

    def get_by_id(self, product_id: str) -> Product | None:
        return self._load().get(product_id)

    def list_all(self) -> list[Product]:
        return list(self._load().values())

    def save(self, product: Product) -> None:
        with self._file.locked():
            products = self._load()
            products[product.id] = product
            self._persist(products)

    # --- Serialization helpers ------------------------------------------------

    def _load(self) -> dict[str, Product]:
        return {
            item["id"]: Product(
                id=item["id"],
                name=item["name"],
                price=Money(Decimal(item["price"]), item.get("currency", DEFAULT_CURRENCY)),
                unit_of_measure=item.get("unit_of_measure", "cylinder"),
            )
            for item in self._file.read()
        }

    def _persist(self, products: dict[str, Product]) -> None:
        self._file.write(
            [
                {
                    "id": p.id,
                    "name": p.name,
                    "price": str(p.price.amount),
                    "currency": p.price.currency,
                    "unit_of_measure": p.unit_of_measure,
                }
                for p in products.values()
            ]
        )
