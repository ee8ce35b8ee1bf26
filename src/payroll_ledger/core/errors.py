"""Error kinds raised by the payroll ledger core."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


class PayrollLedgerError(Exception):
    """Base class for payroll ledger errors."""


class ValidationError(PayrollLedgerError):
    """Raised when a required field is missing or invalid."""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class InvalidTransitionError(PayrollLedgerError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class NotFoundError(PayrollLedgerError):
    """Raised when a referenced obligation or employee does not exist."""

    def __init__(self, entity: str, identifier: object, reason: str | None = None):
        self.entity = entity
        self.identifier = identifier
        msg = f"{entity} {identifier} not found"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


@dataclass(frozen=True)
class DuplicateSkipped:
    """No-op signal: an obligation for this pair already exists.

    Not an error. The generator reports these so callers can show how many
    candidate periods were already covered.
    """

    employee_id: str
    period_start: date
