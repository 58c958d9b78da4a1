"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or precondition was violated."""


class InvalidQuantity(ValidationError):
    """A quantity or delta would produce an invalid counter."""


class InvalidReference(ValidationError):
    """A referenced product or warehouse does not resolve."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InsufficientStock(DomainException):
    """Requested reservation or transfer exceeds what is on hand."""


class InvariantViolation(DomainException):
    """Ledger bookkeeping is out of sync with physical stock."""


class IllegalTransition(DomainException):
    """The requested status change is not in the transition table."""

    def __init__(self, current: str, requested: str) -> None:
        super().__init__(
            f"Cannot move order from '{current}' to '{requested}'"
        )
        self.current = current
        self.requested = requested


class OrderLocked(DomainException):
    """Order lines can no longer be changed."""


class EmptyOrder(DomainException):
    """The order would be left without any lines."""


class ConflictError(DomainException):
    """A write lost an optimistic-concurrency race."""


class OperationTimeout(DomainException):
    """An operation ran past its deadline."""
