"""Domain service: Order State Machine.

The transition table below is the single source of truth for which status
changes are legal, what must hold before each one, and which stock
operation it fires for every order line.  A pair that is not in the table
cannot happen.

A transition either fully succeeds (every line's stock effect applied and
the new status saved) or leaves both the ledger and the order untouched:
the per-line effects run inside a StockUnitOfWork, and the order is only
saved as the last step inside it.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

import structlog

from cylinder_ledger.domain.exceptions import (
    DomainException,
    EntityNotFoundError,
    IllegalTransition,
    InvariantViolation,
    ValidationError,
)
from cylinder_ledger.domain.model.order import Order, OrderLine, OrderStatus
from cylinder_ledger.domain.repository.order_repository import OrderRepository
from cylinder_ledger.domain.service.deadline import Deadline
from cylinder_ledger.domain.service.stock_operations import StockOperationsService
from cylinder_ledger.domain.service.unit_of_work import StockUnitOfWork

logger = structlog.get_logger(__name__)


class StockEffect(Enum):
    NONE = "none"
    RESERVE = "reserve"
    RELEASE = "release"
    FULFILL = "fulfill"


Precondition = Callable[[Order, date | None, date], None]


def _no_precondition(order: Order, scheduled_date: date | None, today: date) -> None:
    return None


def _ready_to_confirm(order: Order, scheduled_date: date | None, today: date) -> None:
    order.check_can_confirm()


def _ready_to_schedule(order: Order, scheduled_date: date | None, today: date) -> None:
    order.check_can_schedule(scheduled_date or order.scheduled_date, today)


@dataclass(frozen=True)
class Transition:
    source: OrderStatus
    target: OrderStatus
    effect: StockEffect = StockEffect.NONE
    precondition: Precondition = _no_precondition


_S = OrderStatus

TRANSITIONS: dict[tuple[OrderStatus, OrderStatus], Transition] = {
    (t.source, t.target): t
    for t in (
        Transition(_S.DRAFT, _S.CONFIRMED, StockEffect.RESERVE, _ready_to_confirm),
        Transition(_S.DRAFT, _S.CANCELLED),
        Transition(_S.CONFIRMED, _S.SCHEDULED, StockEffect.NONE, _ready_to_schedule),
        Transition(_S.CONFIRMED, _S.CANCELLED, StockEffect.RELEASE),
        Transition(_S.SCHEDULED, _S.EN_ROUTE),
        Transition(_S.SCHEDULED, _S.CANCELLED, StockEffect.RELEASE),
        Transition(_S.EN_ROUTE, _S.DELIVERED, StockEffect.FULFILL),
        Transition(_S.DELIVERED, _S.INVOICED),
    )
}


def transition_for(current: OrderStatus, target: OrderStatus) -> Transition:
    try:
        return TRANSITIONS[(current, target)]
    except KeyError:
        raise IllegalTransition(current.value, target.value) from None


def allowed_transitions(status: OrderStatus) -> list[OrderStatus]:
    return [target for (source, target) in TRANSITIONS if source == status]


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of one order in a bulk status change."""

    order_id: int
    ok: bool
    status: OrderStatus | None = None
    error: str | None = None
    error_type: str | None = None


class OrderStateMachine:

    def __init__(
        self,
        order_repo: OrderRepository,
        stock_ops: StockOperationsService,
        operation_timeout: float | None = None,
    ) -> None:
        self._order_repo = order_repo
        self._stock_ops = stock_ops
        self._operation_timeout = operation_timeout

    def change_status(
        self,
        order_id: int,
        new_status: OrderStatus,
        notes: str | None = None,
        scheduled_date: date | None = None,
        actor: str = "system",
    ) -> Order:
        """Move one order to *new_status*, applying its stock effects.

        Steps:
        1. Look the pair up in the transition table.
        2. Check the status-specific precondition.
        3. Apply the stock effect to every line, then save the order, all
           inside one compensating unit of work.
        """
        order = self._order_repo.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")

        transition = transition_for(order.status, new_status)
        if scheduled_date is not None and new_status != OrderStatus.SCHEDULED:
            raise ValidationError("A scheduled date can only be set when scheduling")
        transition.precondition(order, scheduled_date, date.today())

        previous = order.status
        deadline = Deadline(self._operation_timeout)
        with StockUnitOfWork(
            self._stock_ops,
            reference=f"order:{order.id}",
            actor=actor,
            deadline=deadline,
        ) as uow:
            for line in order.lines:
                self._apply_effect(uow, transition.effect, line)
            order.apply_status(
                new_status,
                changed_by=actor,
                notes=notes,
                scheduled_date=scheduled_date if new_status == OrderStatus.SCHEDULED else None,
            )
            deadline.check("save order")
            self._order_repo.save(order)

        logger.info(
            "Order status changed",
            order_id=order.id,
            from_status=previous.value,
            to_status=new_status.value,
            stock_effect=transition.effect.value,
            lines=len(order.lines),
            actor=actor,
        )
        return order

    def change_status_many(
        self,
        order_ids: Iterable[int],
        new_status: OrderStatus,
        notes: str | None = None,
        scheduled_date: date | None = None,
        actor: str = "system",
    ) -> list[TransitionResult]:
        """Apply the same status change to several orders independently.

        One order failing, for a business rule or a store error, does not
        stop or undo the others.
        """
        results: list[TransitionResult] = []
        for order_id in order_ids:
            try:
                order = self.change_status(
                    order_id, new_status, notes=notes,
                    scheduled_date=scheduled_date, actor=actor,
                )
            except DomainException as exc:
                logger.warning(
                    "Bulk status change failed for order",
                    order_id=order_id,
                    to_status=new_status.value,
                    error=str(exc),
                )
                results.append(
                    TransitionResult(
                        order_id=order_id,
                        ok=False,
                        error=str(exc),
                        error_type=type(exc).__name__,
                    )
                )
            except Exception as exc:
                # Store failure: this order's stock was already compensated.
                logger.error(
                    "Bulk status change failed for order",
                    order_id=order_id,
                    to_status=new_status.value,
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                results.append(
                    TransitionResult(
                        order_id=order_id,
                        ok=False,
                        error=str(exc) or type(exc).__name__,
                        error_type=type(exc).__name__,
                    )
                )
            else:
                results.append(TransitionResult(order_id=order_id, ok=True, status=order.status))
        return results

    # --- Internal helpers -----------------------------------------------------

    @staticmethod
    def _apply_effect(uow: StockUnitOfWork, effect: StockEffect, line: OrderLine) -> None:
        qty = line.quantity.value
        if effect == StockEffect.RESERVE:
            reservation = uow.reserve(line.product_id, qty)
            line.warehouse_id = reservation.warehouse_id
            return
        if effect == StockEffect.NONE:
            return
        if line.warehouse_id is None:
            raise InvariantViolation(
                f"Line {line.line_id} ({line.product_id}) has no reserving warehouse"
            )
        if effect == StockEffect.RELEASE:
            uow.release(line.product_id, qty, line.warehouse_id)
        elif effect == StockEffect.FULFILL:
            uow.fulfill(line.product_id, qty, line.warehouse_id)
