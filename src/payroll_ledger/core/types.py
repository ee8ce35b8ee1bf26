"""Type definitions for payroll generation and the payment ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any
from uuid import UUID, uuid5

from payroll_ledger.core.errors import DuplicateSkipped, ValidationError

# Namespace for natural-key identifiers. Changing it changes every derived id.
LEDGER_NAMESPACE = UUID("6f1c3b2e-8d4a-5e7f-9a10-2b3c4d5e6f70")

CENTS = Decimal("0.01")
FULL_WEEK_DAYS = 5


def round_to_cents(amount: Decimal) -> Decimal:
    """Round to 2 decimal places using half-up rounding."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EmployeeStatus(str, Enum):
    """Employee payment status values."""

    ACTIVE = "active"
    PAUSED = "paused"
    LEAVING = "leaving"
    LAID_OFF = "laid_off"


class PaymentMethod(str, Enum):
    """Canonical payment methods."""

    CASH = "cash"
    CHECK = "check"
    DIRECT_DEPOSIT = "direct_deposit"
    ACH = "ach"
    WIRE = "wire"


class ObligationStatus(str, Enum):
    """Payment obligation status values."""

    PENDING = "pending"
    PAID = "paid"
    CANCELED = "canceled"


class LedgerEntryType(str, Enum):
    """Ledger entry kinds."""

    PAYMENT = "payment"
    REVERSAL = "reversal"


class AuditAction(str, Enum):
    """Actions recorded in the per-payment audit trail."""

    GENERATED = "generated"
    PAID = "paid"
    CANCELED = "canceled"
    REVERSED = "reversed"


@dataclass(frozen=True)
class Employee:
    """Read-only view of an employee's pay eligibility."""

    employee_id: str
    name: str
    weekly_rate: Decimal
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    payment_start_date: date | None = None
    payment_method: PaymentMethod | None = None
    bank_name: str | None = None
    account_last_four: str | None = None
    default_days_worked: int = FULL_WEEK_DAYS

    def __post_init__(self) -> None:
        if not self.employee_id:
            raise ValidationError("employee_id is required", field="employee_id")
        if self.weekly_rate < 0:
            raise ValidationError("weekly_rate must be non-negative", field="weekly_rate")
        if not 0 <= self.default_days_worked <= FULL_WEEK_DAYS:
            raise ValidationError(
                f"default_days_worked must be between 0 and {FULL_WEEK_DAYS}",
                field="default_days_worked",
            )

    @property
    def is_active(self) -> bool:
        return self.status == EmployeeStatus.ACTIVE

    def is_payable_for(self, period_start: date) -> bool:
        """Check the payment start date against a period start."""
        return self.payment_start_date is None or self.payment_start_date <= period_start

    def weekly_amount(self, days_worked: int | None = None) -> Decimal:
        """Amount owed for one week, prorated over a five-day week."""
        days = self.default_days_worked if days_worked is None else days_worked
        if days == FULL_WEEK_DAYS:
            return round_to_cents(self.weekly_rate)
        return round_to_cents(self.weekly_rate * days / FULL_WEEK_DAYS)


@dataclass(frozen=True)
class InstrumentDetails:
    """Payment instrument data captured at pay time."""

    check_number: str | None = None
    bank_name: str | None = None
    account_last_four: str | None = None


@dataclass(frozen=True)
class PaymentObligation:
    """A scheduled payment owed to an employee for one pay period.

    Records are immutable; lifecycle operations return updated copies.
    """

    obligation_id: UUID
    employee_id: str
    period_start: date
    period_end: date
    due_date: date
    amount: Decimal
    created_at: datetime
    days_worked: int = FULL_WEEK_DAYS
    status: ObligationStatus = ObligationStatus.PENDING
    payment_method: PaymentMethod | None = None
    instrument: InstrumentDetails = field(default_factory=InstrumentDetails)
    deduction_amount: Decimal = Decimal("0")
    paid_date: date | None = None

    @staticmethod
    def derive_id(employee_id: str, period_start: date) -> UUID:
        """Deterministic identifier from the natural key."""
        return uuid5(LEDGER_NAMESPACE, f"{employee_id}|{period_start.isoformat()}")

    @property
    def key(self) -> tuple[str, date]:
        return (self.employee_id, self.period_start)

    @property
    def net_amount(self) -> Decimal:
        return self.amount - self.deduction_amount

    @property
    def check_number(self) -> str | None:
        return self.instrument.check_number


@dataclass(frozen=True)
class LedgerEntry:
    """Immutable record of a completed payment or a reversal of one."""

    entry_id: UUID
    entry_type: LedgerEntryType
    obligation_id: UUID
    employee_id: str
    period_start: date
    period_end: date
    paid_date: date
    amount: Decimal  # Signed: payments positive, reversals negative
    created_at: datetime
    payment_method: PaymentMethod | None = None
    check_number: str | None = None
    reason: str | None = None
    created_by: str | None = None

    @staticmethod
    def payment_id_for(obligation_id: UUID) -> UUID:
        return uuid5(LEDGER_NAMESPACE, f"payment|{obligation_id}")

    @staticmethod
    def reversal_id_for(obligation_id: UUID) -> UUID:
        return uuid5(LEDGER_NAMESPACE, f"reversal|{obligation_id}")

    @property
    def is_reversal(self) -> bool:
        return self.entry_type == LedgerEntryType.REVERSAL

    @property
    def reverses_payment_id(self) -> UUID | None:
        """The reversed obligation, for reversal entries only."""
        return self.obligation_id if self.is_reversal else None


@dataclass(frozen=True)
class AuditRecord:
    """One line of a payment's audit trail."""

    audit_id: UUID
    obligation_id: UUID
    action: AuditAction
    created_at: datetime
    reason: str | None = None
    user_id: str | None = None


@dataclass(frozen=True)
class IneligibleSkip:
    """A candidate (employee, period) the generator declined."""

    employee_id: str
    period_start: date
    reason: str


@dataclass
class GenerationPlan:
    """Outcome of planning a generation run over a date range."""

    created: list[PaymentObligation] = field(default_factory=list)
    skipped_duplicate: list[DuplicateSkipped] = field(default_factory=list)
    skipped_ineligible: list[IneligibleSkip] = field(default_factory=list)

    def counts(self) -> dict[str, int]:
        return {
            "created": len(self.created),
            "skipped_duplicate": len(self.skipped_duplicate),
            "skipped_ineligible": len(self.skipped_ineligible),
        }


@dataclass(frozen=True)
class LedgerFilter:
    """Read-side filter for ledger queries."""

    employee_id: str | None = None
    date_from: date | None = None
    date_to: date | None = None

    def matches(self, employee_id: str, on_date: date) -> bool:
        if self.employee_id is not None and employee_id != self.employee_id:
            return False
        if self.date_from is not None and on_date < self.date_from:
            return False
        if self.date_to is not None and on_date > self.date_to:
            return False
        return True


@dataclass(frozen=True)
class ObligationFilter:
    """Filter for obligation listings."""

    employee_id: str | None = None
    status: ObligationStatus | None = None
    date_from: date | None = None  # Applied to period_start
    date_to: date | None = None
    has_check_number: bool = False

    def matches(self, obligation: PaymentObligation) -> bool:
        if self.employee_id is not None and obligation.employee_id != self.employee_id:
            return False
        if self.has_check_number and not obligation.instrument.check_number:
            return False
        if self.status is not None and obligation.status != self.status:
            return False
        if self.date_from is not None and obligation.period_start < self.date_from:
            return False
        if self.date_to is not None and obligation.period_start > self.date_to:
            return False
        return True


@dataclass(frozen=True)
class LedgerBatch:
    """Reporting-time grouping of ledger entries. Never stored."""

    batch_key: str
    period_start: date
    period_end: date
    paid_date: date
    entries: tuple[LedgerEntry, ...]
    total_amount: Decimal
    employee_count: int
    reasons: tuple[str, ...]
    is_reversal: bool
    created_at: datetime
    reversed_obligation_ids: frozenset[UUID] = frozenset()
    # Reversal batches only: the payment amount undone, and its net effect
    reversed_amount: Decimal = Decimal("0")
    net_amount: Decimal = Decimal("0")

    def to_dict(self) -> dict[str, Any]:
        return {
            "batch_key": self.batch_key,
            "period_start": self.period_start.isoformat(),
            "period_end": self.period_end.isoformat(),
            "paid_date": self.paid_date.isoformat(),
            "total_amount": str(self.total_amount),
            "net_amount": str(self.net_amount),
            "employee_count": self.employee_count,
            "entry_count": len(self.entries),
            "reasons": list(self.reasons),
            "is_reversal": self.is_reversal,
        }


@dataclass(frozen=True)
class LedgerArchive:
    """A year's worth of batches with totals."""

    year: int
    batches: tuple[LedgerBatch, ...]
    total_records: int
    total_amount: Decimal
