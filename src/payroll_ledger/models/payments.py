"""Payment obligation, ledger entry and audit log models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from payroll_ledger.core.payment_methods import normalize_payment_method
from payroll_ledger.core.types import (
    AuditAction,
    AuditRecord,
    InstrumentDetails,
    LedgerEntry,
    LedgerEntryType,
    ObligationStatus,
    PaymentObligation,
)
from payroll_ledger.models.base import Base


class PaymentObligationRecord(Base):
    """One weekly payment owed to an employee.

    Unique per (employee_id, period_start); the id is derived from that
    pair so duplicate generation collides instead of creating a second row.
    """

    __tablename__ = "payment_obligation"

    obligation_id: Mapped[UUID] = mapped_column(primary_key=True)
    employee_id: Mapped[str] = mapped_column(
        String,
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    days_worked: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    status: Mapped[str] = mapped_column(String, nullable=False, default="pending")
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    check_number: Mapped[str | None] = mapped_column(String, nullable=True)
    bank_name: Mapped[str | None] = mapped_column(String, nullable=True)
    account_last_four: Mapped[str | None] = mapped_column(String(4), nullable=True)
    deduction_amount: Mapped[Decimal] = mapped_column(
        Numeric(14, 2), nullable=False, default=Decimal("0")
    )
    paid_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "period_start", name="payment_obligation_one_per_week"),
        UniqueConstraint("check_number", name="payment_obligation_check_number_unique"),
        CheckConstraint(
            "status IN ('pending', 'paid', 'canceled')",
            name="payment_obligation_status_check",
        ),
        CheckConstraint("amount >= 0", name="payment_obligation_amount_check"),
        CheckConstraint(
            "period_end >= period_start",
            name="payment_obligation_dates_check",
        ),
        CheckConstraint(
            "status <> 'paid' OR paid_date IS NOT NULL",
            name="payment_obligation_paid_date_check",
        ),
        Index("ix_payment_obligation_period_start", "period_start"),
    )

    def to_domain(self) -> PaymentObligation:
        return PaymentObligation(
            obligation_id=self.obligation_id,
            employee_id=self.employee_id,
            period_start=self.period_start,
            period_end=self.period_end,
            due_date=self.due_date,
            amount=Decimal(self.amount),
            days_worked=self.days_worked,
            status=ObligationStatus(self.status),
            payment_method=normalize_payment_method(self.payment_method),
            instrument=InstrumentDetails(
                check_number=self.check_number,
                bank_name=self.bank_name,
                account_last_four=self.account_last_four,
            ),
            deduction_amount=Decimal(self.deduction_amount),
            paid_date=self.paid_date,
            created_at=self.created_at,
        )

    @staticmethod
    def values_from(obligation: PaymentObligation) -> dict:
        """Column values for an insert or update."""
        return {
            "obligation_id": obligation.obligation_id,
            "employee_id": obligation.employee_id,
            "period_start": obligation.period_start,
            "period_end": obligation.period_end,
            "due_date": obligation.due_date,
            "amount": obligation.amount,
            "days_worked": obligation.days_worked,
            "status": obligation.status.value,
            "payment_method": obligation.payment_method.value if obligation.payment_method else None,
            "check_number": obligation.instrument.check_number,
            "bank_name": obligation.instrument.bank_name,
            "account_last_four": obligation.instrument.account_last_four,
            "deduction_amount": obligation.deduction_amount,
            "paid_date": obligation.paid_date,
            "created_at": obligation.created_at,
        }


class LedgerEntryRecord(Base):
    """Append-only ledger row. Never updated, never deleted."""

    __tablename__ = "payment_ledger_entry"

    entry_id: Mapped[UUID] = mapped_column(primary_key=True)
    entry_type: Mapped[str] = mapped_column(String, nullable=False)
    obligation_id: Mapped[UUID] = mapped_column(
        ForeignKey("payment_obligation.obligation_id", ondelete="RESTRICT"),
        nullable=False,
    )
    employee_id: Mapped[str] = mapped_column(String, nullable=False)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    paid_date: Mapped[date] = mapped_column(Date, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    check_number: Mapped[str | None] = mapped_column(String, nullable=True)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('payment', 'reversal')",
            name="payment_ledger_entry_type_check",
        ),
        CheckConstraint(
            "entry_type <> 'reversal' OR reason IS NOT NULL",
            name="payment_ledger_entry_reversal_reason_check",
        ),
        Index("ix_payment_ledger_entry_obligation", "obligation_id"),
        Index("ix_payment_ledger_entry_paid_date", "paid_date"),
    )

    def to_domain(self) -> LedgerEntry:
        return LedgerEntry(
            entry_id=self.entry_id,
            entry_type=LedgerEntryType(self.entry_type),
            obligation_id=self.obligation_id,
            employee_id=self.employee_id,
            period_start=self.period_start,
            period_end=self.period_end,
            paid_date=self.paid_date,
            amount=Decimal(self.amount),
            payment_method=normalize_payment_method(self.payment_method),
            check_number=self.check_number,
            reason=self.reason,
            created_by=self.created_by,
            created_at=self.created_at,
        )

    @staticmethod
    def values_from(entry: LedgerEntry) -> dict:
        return {
            "entry_id": entry.entry_id,
            "entry_type": entry.entry_type.value,
            "obligation_id": entry.obligation_id,
            "employee_id": entry.employee_id,
            "period_start": entry.period_start,
            "period_end": entry.period_end,
            "paid_date": entry.paid_date,
            "amount": entry.amount,
            "payment_method": entry.payment_method.value if entry.payment_method else None,
            "check_number": entry.check_number,
            "reason": entry.reason,
            "created_by": entry.created_by,
            "created_at": entry.created_at,
        }


class AuditLogRecord(Base):
    """Per-payment audit trail."""

    __tablename__ = "payment_audit_log"

    audit_id: Mapped[UUID] = mapped_column(primary_key=True)
    obligation_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    action: Mapped[str] = mapped_column(String, nullable=False)
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    user_id: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        CheckConstraint(
            "action IN ('generated', 'paid', 'canceled', 'reversed')",
            name="payment_audit_log_action_check",
        ),
    )

    def to_domain(self) -> AuditRecord:
        return AuditRecord(
            audit_id=self.audit_id,
            obligation_id=self.obligation_id,
            action=AuditAction(self.action),
            reason=self.reason,
            user_id=self.user_id,
            created_at=self.created_at,
        )

    @classmethod
    def from_domain(cls, record: AuditRecord) -> AuditLogRecord:
        return cls(
            audit_id=record.audit_id,
            obligation_id=record.obligation_id,
            action=record.action.value,
            reason=record.reason,
            user_id=record.user_id,
            created_at=record.created_at,
        )
