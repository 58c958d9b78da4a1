"""Compensating unit of work for multi-line stock effects.

The ledger commits one row at a time, so a command that touches several
order lines cannot rely on a single transaction.  Instead every applied
step records its inverse; if anything inside the ``with`` block raises, the
inverses run newest first and the original error propagates.

    with StockUnitOfWork(stock_ops, reference="order:7") as uow:
        for line in order.lines:
            uow.reserve(line.product_id, line.quantity.value)
        order_repo.save(order)
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from cylinder_ledger.domain.exceptions import InvariantViolation
from cylinder_ledger.domain.service.deadline import Deadline
from cylinder_ledger.domain.service.stock_operations import (
    Reservation,
    StockOperationsService,
)

logger = structlog.get_logger(__name__)


class StockUnitOfWork:

    def __init__(
        self,
        stock_ops: StockOperationsService,
        reference: str | None = None,
        actor: str = "system",
        deadline: Deadline | None = None,
    ) -> None:
        self._stock_ops = stock_ops
        self._reference = reference
        self._actor = actor
        self._deadline = deadline or Deadline.unlimited()
        self._undo: list[tuple[str, Callable[[], object]]] = []

    def __enter__(self) -> StockUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc is not None:
            self.rollback(exc)
        else:
            self._undo.clear()
        return False

    @property
    def deadline(self) -> Deadline:
        return self._deadline

    # --- Steps ------------------------------------------------------------------

    def reserve(self, product_id: str, quantity: int) -> Reservation:
        reservation = self._stock_ops.reserve(
            product_id, quantity, reference=self._reference,
            actor=self._actor, deadline=self._deadline,
        )
        self._undo.append((
            f"release {quantity} x {product_id} at {reservation.warehouse_id}",
            lambda: self._stock_ops.release(
                product_id, quantity, reservation.warehouse_id,
                reference=self._reference, actor=self._actor, rollback=True,
            ),
        ))
        return reservation

    def release(self, product_id: str, quantity: int, warehouse_id: str) -> None:
        self._stock_ops.release(
            product_id, quantity, warehouse_id, reference=self._reference,
            actor=self._actor, deadline=self._deadline,
        )
        self._undo.append((
            f"re-reserve {quantity} x {product_id} at {warehouse_id}",
            lambda: self._stock_ops.reserve_at(
                product_id, quantity, warehouse_id,
                reference=self._reference, actor=self._actor, rollback=True,
            ),
        ))

    def fulfill(self, product_id: str, quantity: int, warehouse_id: str) -> None:
        self._stock_ops.fulfill(
            product_id, quantity, warehouse_id, reference=self._reference,
            actor=self._actor, deadline=self._deadline,
        )
        self._undo.append((
            f"restock {quantity} x {product_id} at {warehouse_id}",
            lambda: self._stock_ops.restock(
                product_id, quantity, warehouse_id,
                reference=self._reference, actor=self._actor,
            ),
        ))

    # --- Rollback ---------------------------------------------------------------

    def rollback(self, cause: BaseException) -> None:
        """Undo every applied step, newest first.

        Keeps going when one inverse fails so as much as possible is put
        back, then raises InvariantViolation naming what could not be undone.
        """
        if not self._undo:
            return
        logger.warning(
            "Rolling back stock operations",
            reference=self._reference,
            steps=len(self._undo),
            cause=str(cause),
        )
        failed: list[str] = []
        while self._undo:
            description, undo = self._undo.pop()
            try:
                undo()
            except Exception as exc:
                logger.error(
                    "Compensation failed",
                    reference=self._reference,
                    step=description,
                    error=str(exc),
                )
                failed.append(description)
        if failed:
            raise InvariantViolation(
                f"Rollback of {self._reference or 'stock operation'} incomplete: "
                + "; ".join(failed)
            ) from cause
