"""Application service: Change Order Status use case.

Thin adapter over the OrderStateMachine: parses the requested status and
maps the result to a DTO.  Bulk changes report one result per order.
"""

from __future__ import annotations

from datetime import date

from cylinder_ledger.application.dto import OrderDTO, TransitionResultDTO, order_to_dto
from cylinder_ledger.domain.exceptions import ValidationError
from cylinder_ledger.domain.model.order import OrderStatus
from cylinder_ledger.domain.service.order_state_machine import OrderStateMachine


def parse_status(raw: str) -> OrderStatus:
    try:
        return OrderStatus(raw.strip().lower())
    except ValueError:
        valid = ", ".join(status.value for status in OrderStatus)
        raise ValidationError(f"Unknown order status '{raw}' (expected one of: {valid})") from None


class ChangeOrderStatusHandler:

    def __init__(self, state_machine: OrderStateMachine) -> None:
        self._state_machine = state_machine

    def handle(
        self,
        order_id: int,
        new_status: str,
        notes: str | None = None,
        scheduled_date: date | None = None,
        actor: str = "system",
    ) -> OrderDTO:
        order = self._state_machine.change_status(
            order_id,
            parse_status(new_status),
            notes=notes,
            scheduled_date=scheduled_date,
            actor=actor,
        )
        return order_to_dto(order)


class BulkChangeOrderStatusHandler:

    def __init__(self, state_machine: OrderStateMachine) -> None:
        self._state_machine = state_machine

    def handle(
        self,
        order_ids: list[int],
        new_status: str,
        notes: str | None = None,
        scheduled_date: date | None = None,
        actor: str = "system",
    ) -> list[TransitionResultDTO]:
        results = self._state_machine.change_status_many(
            order_ids,
            parse_status(new_status),
            notes=notes,
            scheduled_date=scheduled_date,
            actor=actor,
        )
        return [
            TransitionResultDTO(
                order_id=result.order_id,
                ok=result.ok,
                status=result.status.value if result.status else None,
                error=result.error,
                error_type=result.error_type,
            )
            for result in results
        ]
