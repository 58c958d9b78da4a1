"""Deadline for multi-step ledger operations."""

from __future__ import annotations

import time
from collections.abc import Callable

from cylinder_ledger.domain.exceptions import OperationTimeout


class Deadline:
    """Wall-clock budget for one command.

    ``check()`` is called before every ledger round trip; once the budget is
    spent it raises ``OperationTimeout`` so the caller can roll back.
    A ``seconds`` of None means no limit.
    """

    def __init__(
        self,
        seconds: float | None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._clock = clock
        self._seconds = seconds
        self._expires_at = None if seconds is None else clock() + seconds

    @classmethod
    def unlimited(cls) -> Deadline:
        return cls(None)

    @property
    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def check(self, operation: str) -> None:
        if self._expires_at is not None and self._clock() >= self._expires_at:
            raise OperationTimeout(
                f"{operation} did not complete within {self._seconds:g}s"
            )
