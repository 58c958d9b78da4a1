"""Warehouse — a depot that holds cylinder stock."""

from __future__ import annotations

from dataclasses import dataclass

from cylinder_ledger.domain.exceptions import ValidationError


@dataclass
class Warehouse:

    id: str
    name: str

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("Warehouse ID is required")
        if not self.name or not self.name.strip():
            raise ValidationError("Warehouse name is required")
