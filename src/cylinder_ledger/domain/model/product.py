"""Product aggregate.

Products live independently of orders: a cylinder type (e.g. a 13 kg
refill) with a catalog price.  Order lines copy the price at the time they
are added, so later price edits never touch existing orders.
"""

from __future__ import annotations

from dataclasses import dataclass

from cylinder_ledger.domain.exceptions import ValidationError
from cylinder_ledger.domain.model.value_objects import Money


@dataclass
class Product:
    """A cylinder product in the catalog.

    ``id`` doubles as the SKU.
    """

    id: str
    name: str
    price: Money
    unit_of_measure: str = "cylinder"

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("Product SKU is required")
        if not self.name or not self.name.strip():
            raise ValidationError("Product name is required")
