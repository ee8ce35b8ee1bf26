"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from payroll_ledger.core.types import (
    AuditRecord,
    LedgerArchive,
    LedgerBatch,
    LedgerEntry,
    PaymentObligation,
)


class ErrorResponse(BaseModel):
    """Error body returned by every failing endpoint."""

    detail: str
    code: str


# ============================================================================
# Generation schemas
# ============================================================================


class GenerateRequest(BaseModel):
    """Generate obligations for a date range."""

    range_start: date
    range_end: date


class GenerateYearRequest(BaseModel):
    """Generate obligations for a calendar year."""

    year: int = Field(ge=1900, le=9998)


# ============================================================================
# Payment schemas
# ============================================================================


class PaymentResponse(BaseModel):
    """A payment obligation."""

    model_config = ConfigDict(from_attributes=True)

    obligation_id: UUID
    employee_id: str
    period_start: date
    period_end: date
    due_date: date
    amount: Decimal
    days_worked: int
    status: str
    payment_method: str | None = None
    check_number: str | None = None
    bank_name: str | None = None
    account_last_four: str | None = None
    deduction_amount: Decimal
    net_amount: Decimal
    paid_date: date | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, obligation: PaymentObligation) -> PaymentResponse:
        return cls(
            obligation_id=obligation.obligation_id,
            employee_id=obligation.employee_id,
            period_start=obligation.period_start,
            period_end=obligation.period_end,
            due_date=obligation.due_date,
            amount=obligation.amount,
            days_worked=obligation.days_worked,
            status=obligation.status.value,
            payment_method=obligation.payment_method.value if obligation.payment_method else None,
            check_number=obligation.instrument.check_number,
            bank_name=obligation.instrument.bank_name,
            account_last_four=obligation.instrument.account_last_four,
            deduction_amount=obligation.deduction_amount,
            net_amount=obligation.net_amount,
            paid_date=obligation.paid_date,
            created_at=obligation.created_at,
        )


class PaymentListResponse(BaseModel):
    """Schema for listing payments."""

    items: list[PaymentResponse]
    total: int


class GenerationResponse(BaseModel):
    """Counts and new obligations from a generation run."""

    range_start: date
    range_end: date
    created: int
    skipped_duplicate: int
    skipped_ineligible: int
    payments: list[PaymentResponse]


class MarkPaidRequest(BaseModel):
    """Mark a pending payment as paid.

    For check payments, omit check_number to have the next one assigned.
    """

    paid_date: date
    payment_method: str
    check_number: str | None = None
    bank_name: str | None = None
    account_last_four: str | None = None
    deduction_amount: Decimal = Field(default=Decimal("0"), ge=0)
    note: str | None = None
    user_id: str | None = None


class CancelRequest(BaseModel):
    reason: str | None = None
    user_id: str | None = None


class ReverseRequest(BaseModel):
    """Reverse a completed payment. The reason is mandatory."""

    reason: str = ""
    user_id: str | None = None


class LedgerEntryResponse(BaseModel):
    """An immutable ledger entry."""

    entry_id: UUID
    entry_type: str
    obligation_id: UUID
    reverses_payment_id: UUID | None = None
    employee_id: str
    period_start: date
    period_end: date
    paid_date: date
    amount: Decimal
    payment_method: str | None = None
    check_number: str | None = None
    reason: str | None = None
    created_by: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: LedgerEntry) -> LedgerEntryResponse:
        return cls(
            entry_id=entry.entry_id,
            entry_type=entry.entry_type.value,
            obligation_id=entry.obligation_id,
            reverses_payment_id=entry.reverses_payment_id,
            employee_id=entry.employee_id,
            period_start=entry.period_start,
            period_end=entry.period_end,
            paid_date=entry.paid_date,
            amount=entry.amount,
            payment_method=entry.payment_method.value if entry.payment_method else None,
            check_number=entry.check_number,
            reason=entry.reason,
            created_by=entry.created_by,
            created_at=entry.created_at,
        )


class MarkPaidResponse(BaseModel):
    payment: PaymentResponse
    ledger_entry: LedgerEntryResponse


class ReversalResponse(BaseModel):
    message: str
    reversal_id: UUID
    original_payment_id: UUID
    entry: LedgerEntryResponse


class AuditRecordResponse(BaseModel):
    audit_id: UUID
    payment_id: UUID
    action: str
    reason: str | None = None
    user_id: str | None = None
    created_at: datetime

    @classmethod
    def from_domain(cls, record: AuditRecord) -> AuditRecordResponse:
        return cls(
            audit_id=record.audit_id,
            payment_id=record.obligation_id,
            action=record.action.value,
            reason=record.reason,
            user_id=record.user_id,
            created_at=record.created_at,
        )


class NextCheckNumberResponse(BaseModel):
    next_check_number: int


# ============================================================================
# Ledger schemas
# ============================================================================


class LedgerBatchResponse(BaseModel):
    """A reporting batch of payments, or a single reversal."""

    batch_key: str
    period_start: date
    period_end: date
    paid_date: date
    total_amount: Decimal
    net_amount: Decimal
    employee_count: int
    reasons: list[str]
    is_reversal: bool
    created_at: datetime
    reversed_obligation_ids: list[UUID]
    entries: list[LedgerEntryResponse]

    @classmethod
    def from_domain(cls, batch: LedgerBatch) -> LedgerBatchResponse:
        return cls(
            batch_key=batch.batch_key,
            period_start=batch.period_start,
            period_end=batch.period_end,
            paid_date=batch.paid_date,
            total_amount=batch.total_amount,
            net_amount=batch.net_amount,
            employee_count=batch.employee_count,
            reasons=list(batch.reasons),
            is_reversal=batch.is_reversal,
            created_at=batch.created_at,
            reversed_obligation_ids=sorted(batch.reversed_obligation_ids, key=str),
            entries=[LedgerEntryResponse.from_domain(e) for e in batch.entries],
        )


class LedgerArchiveResponse(BaseModel):
    year: int
    total_records: int
    total_amount: Decimal
    batches: list[LedgerBatchResponse]

    @classmethod
    def from_domain(cls, archive: LedgerArchive) -> LedgerArchiveResponse:
        return cls(
            year=archive.year,
            total_records=archive.total_records,
            total_amount=archive.total_amount,
            batches=[LedgerBatchResponse.from_domain(b) for b in archive.batches],
        )
